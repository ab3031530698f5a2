import logging

from releaser.clients.github_client import GitHubClient
from releaser.errors import DispatchFailed
from releaser.models import CommitRef, VersionTag
from releaser.utils.logging import setup_logger
from releaser.utils.retry import RetryPolicy


class ReleaseDispatcher:
    """Hands a published tag to a separately scheduled delivery workflow.

    The handoff is an explicit ``repository_dispatch`` naming the event type
    and carrying the tag and commit as payload; a tag push made with the
    pipeline's own credentials is never assumed to start anything.
    """

    def __init__(self, github: GitHubClient, repository: str, event_type: str, retry: RetryPolicy):
        self.github: GitHubClient = github
        self.repository: str = repository
        self.event_type: str = event_type
        self.retry: RetryPolicy = retry
        self.logger: logging.Logger = setup_logger("ReleaseDispatcher")

    def payload(self, tag: VersionTag, commit: CommitRef) -> dict[str, str]:
        return {"tag": tag.name, "sha": commit.sha, "message": commit.subject}

    def dispatch(self, tag: VersionTag, commit: CommitRef) -> dict[str, str]:
        payload = self.payload(tag, commit)
        try:
            gh_repo = self.github.get_repo(self.repository)
            self.retry.call(
                gh_repo.create_repository_dispatch, self.event_type, client_payload=payload,
                description=f"Dispatching {self.event_type} for {tag.name}",
            )
        except Exception as e:
            raise DispatchFailed(f"Failed to dispatch {self.event_type} for {tag.name} on {self.repository}: {e}") from e
        self.logger.info(f"Dispatched {self.event_type} for {tag.name} ({commit.short_sha}) on {self.repository}")
        return payload
