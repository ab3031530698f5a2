import logging
from typing import Sequence
from github import UnknownObjectException

from releaser.clients.github_client import GitHubClient
from releaser.errors import ReleaseCreationFailed
from releaser.models import Release, ReleaseConfig, VersionTag
from releaser.utils.logging import setup_logger
from releaser.utils.retry import RetryPolicy


def format_changes(messages: Sequence[str]) -> str:
    subjects = [m.strip().splitlines()[0] for m in messages if m.strip()]
    return "\n".join(f"- {s}" for s in subjects)


class ReleaseManager:
    def __init__(self, github: GitHubClient, repository: str, config: ReleaseConfig, retry: RetryPolicy):
        self.github: GitHubClient = github
        self.repository: str = repository
        self.config: ReleaseConfig = config
        self.retry: RetryPolicy = retry
        self.logger: logging.Logger = setup_logger("ReleaseManager")

    def render(self, tag: VersionTag, messages: Sequence[str]) -> tuple[str, str]:
        sha = tag.commit.sha if tag.commit else ""
        fields = {
            "tag": tag.name,
            "version": tag.version,
            "sha": sha,
            "short_sha": sha[:7],
            "message": tag.commit.message if tag.commit else "",
            "changes": format_changes(messages),
        }
        return self.config.title.format(**fields), self.config.body.format(**fields).strip()

    def ensure_release(self, tag: VersionTag, messages: Sequence[str] = (), published: bool = False) -> Release:
        """Create the release for ``tag``, or return the one that already exists.

        ``published`` is the publisher's confirmation that the tag ref is
        durable; without it the ref is probed before anything is written.
        """
        gh_repo = self.github.get_repo(self.repository)
        if not published and not self._tag_is_published(gh_repo, tag):
            raise ReleaseCreationFailed(f"Failed to create release {tag.name} on {self.repository}: tag is not published")

        def attempt() -> Release:
            existing = self._find_release(gh_repo, tag.name)
            if existing is not None:
                return Release(
                    tag=tag, title=existing.title, body=existing.body or "", draft=existing.draft,
                    prerelease=existing.prerelease, url=existing.html_url, created=False,
                )
            created = gh_repo.create_git_release(
                tag=tag.name, name=title, message=body, draft=self.config.draft, prerelease=self.config.prerelease
            )
            return Release(
                tag=tag, title=title, body=body, draft=self.config.draft,
                prerelease=self.config.prerelease, url=created.html_url,
            )

        try:
            title, body = self.render(tag, messages)
            release = self.retry.call(attempt, description=f"Creating release {tag.name}")
        except Exception as e:
            raise ReleaseCreationFailed(f"Failed to create release {tag.name} on {self.repository}: {e}") from e

        if release.created:
            self.logger.info(f"Created release {release.title} for {tag.name} on {self.repository}")
        else:
            self.logger.info(f"Release for {tag.name} already exists on {self.repository}, nothing to do")
        return release

    def _find_release(self, gh_repo, name: str):
        try:
            return gh_repo.get_release(name)
        except UnknownObjectException:
            pass
        # the by-tag lookup only sees published releases, drafts have to be listed
        for release in gh_repo.get_releases():
            if release.tag_name == name:
                return release
        return None

    def _tag_is_published(self, gh_repo, tag: VersionTag) -> bool:
        try:
            self.retry.call(gh_repo.get_git_ref, f"tags/{tag.name}", description=f"Looking up tag {tag.name}")
            return True
        except UnknownObjectException:
            return False
        except Exception as e:
            raise ReleaseCreationFailed(f"Failed to confirm tag {tag.name} on {self.repository}: {e}") from e
