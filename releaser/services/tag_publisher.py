import logging
from github import GithubException, InputGitAuthor, UnknownObjectException

from releaser.clients.github_client import GitHubClient
from releaser.errors import TagAlreadyExists, TagPublishFailed
from releaser.models import TaggingConfig, VersionTag
from releaser.utils.logging import setup_logger
from releaser.utils.retry import RetryPolicy


class TagPublisher:
    def __init__(self, github: GitHubClient, repository: str, config: TaggingConfig, retry: RetryPolicy, dry_run: bool = False):
        self.github: GitHubClient = github
        self.repository: str = repository
        self.config: TaggingConfig = config
        self.retry: RetryPolicy = retry
        self.dry_run: bool = dry_run
        self.logger: logging.Logger = setup_logger("TagPublisher")

    def tag_ref_sha(self, tag: str) -> str | None:
        def fetch() -> str | None:
            try:
                return self.github.get_repo(self.repository).get_git_ref(f"tags/{tag}").object.sha
            except UnknownObjectException:
                return None
        return self.retry.call(fetch, description=f"Looking up tag {tag}")

    def tag_exists(self, tag: str) -> bool:
        return self.tag_ref_sha(tag) is not None

    def publish(self, candidate: VersionTag) -> VersionTag:
        if candidate.commit is None:
            raise TagPublishFailed(f"Failed to create tag {candidate.name} on {self.repository}: no commit to tag")
        existing = self.tag_ref_sha(candidate.name)
        if existing is not None:
            raise TagAlreadyExists(candidate.name, existing)

        message = self.config.message.format(tag=candidate.name, version=candidate.version, sha=candidate.commit.sha)
        tag = VersionTag(
            major=candidate.major,
            minor=candidate.minor,
            patch=candidate.patch,
            prefix=candidate.prefix,
            annotated=self.config.annotated,
            commit=candidate.commit,
            message=message if self.config.annotated else None,
        )
        if self.dry_run:
            self.logger.info(f"Dry run mode. tag {tag.name} on {tag.commit.sha} in repo {self.repository} has not been created")
            return tag
        self.create_tag(tag)
        return tag

    def create_tag(self, tag: VersionTag) -> None:
        gh_repo = self.github.get_repo(self.repository)
        target_sha: str | None = None
        try:
            if tag.annotated:
                tagger = InputGitAuthor(self.config.tagger_name, self.config.tagger_email)
                tag_obj = self.retry.call(
                    gh_repo.create_git_tag,
                    tag=tag.name, message=tag.message, object=tag.commit.sha, type="commit", tagger=tagger,
                    description=f"Creating tag object {tag.name}",
                )
                target_sha = tag_obj.sha
            else:
                target_sha = tag.commit.sha
            self.retry.call(gh_repo.create_git_ref, f"refs/tags/{tag.name}", target_sha, description=f"Creating ref tags/{tag.name}")
        except GithubException as e:
            current = self.tag_ref_sha(tag.name) if e.status == 422 and target_sha else None
            if current is not None:
                # a retried ref creation whose first attempt actually landed
                if current == target_sha:
                    self.logger.info(f"Created tag {tag.name} on {self.repository}")
                    return
                raise TagAlreadyExists(tag.name, current) from e
            raise TagPublishFailed(f"Failed to create tag {tag.name} on {self.repository}: {e}") from e
        except Exception as e:
            raise TagPublishFailed(f"Failed to create tag {tag.name} on {self.repository}: {e}") from e
        self.logger.info(f"Created tag {tag.name} on {self.repository}")
