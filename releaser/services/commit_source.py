import json
import logging

from releaser.clients.github_client import GitHubClient
from releaser.models import CommitRef, DispatchEvent, ExistingTag, PushEvent
from releaser.utils.logging import setup_logger
from releaser.utils.retry import RetryPolicy


def load_event(event_path: str) -> dict:
    with open(event_path, "r") as f:
        return json.load(f)


def parse_push_event(event: dict) -> PushEvent:
    head = event.get("head_commit") or {}
    sha = head.get("id") or event.get("after")
    if not sha:
        raise ValueError("Push event carries no head commit")
    return PushEvent(
        ref=event.get("ref", ""),
        commit=CommitRef(sha=sha, message=head.get("message", "")),
        repository=(event.get("repository") or {}).get("full_name"),
    )


def parse_dispatch_event(event: dict) -> DispatchEvent:
    payload = event.get("client_payload") or {}
    if not payload.get("tag") or not payload.get("sha"):
        raise ValueError("Dispatch event payload must carry both 'tag' and 'sha'")
    return DispatchEvent(
        tag=payload["tag"],
        commit=CommitRef(sha=payload["sha"], message=payload.get("message", "")),
        repository=(event.get("repository") or {}).get("full_name"),
    )


class CommitSource:
    def __init__(self, github: GitHubClient, repository: str, retry: RetryPolicy):
        self.github: GitHubClient = github
        self.repository: str = repository
        self.retry: RetryPolicy = retry
        self.logger: logging.Logger = setup_logger("CommitSource")

    def get_commit(self, sha: str) -> CommitRef:
        def fetch() -> CommitRef:
            commit = self.github.get_repo(self.repository).get_commit(sha)
            return CommitRef(
                sha=commit.sha,
                message=commit.commit.message,
                parents=tuple(p.sha for p in commit.parents),
            )
        return self.retry.call(fetch, description=f"Fetching commit {sha[:7]}")

    def list_tags(self) -> list[ExistingTag]:
        def fetch() -> list[ExistingTag]:
            tags = self.github.get_repo(self.repository).get_tags()
            return [ExistingTag(name=t.name, sha=t.commit.sha) for t in tags]
        tags = self.retry.call(fetch, description=f"Listing tags of {self.repository}")
        self.logger.info(f"Found {len(tags)} tags in {self.repository}")
        return tags

    def messages_since(self, base_sha: str | None, head: CommitRef) -> list[str]:
        """Messages of the commits reachable from ``head`` but not from ``base_sha``."""
        if not base_sha:
            return [head.message]
        if base_sha == head.sha:
            return []

        def fetch() -> list[str]:
            comparison = self.github.get_repo(self.repository).compare(base_sha, head.sha)
            return [c.commit.message for c in comparison.commits]
        messages = self.retry.call(fetch, description=f"Comparing {base_sha[:7]}...{head.short_sha}")
        return messages or [head.message]
