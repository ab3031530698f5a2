from unittest.mock import MagicMock

import pytest
from github import GithubException

from releaser.errors import DispatchFailed
from releaser.models import CommitRef, VersionTag
from releaser.services.release_dispatcher import ReleaseDispatcher
from releaser.utils.retry import RetryPolicy


@pytest.fixture
def mock_github():
    return MagicMock()


@pytest.fixture
def dispatcher(mock_github):
    d = ReleaseDispatcher(mock_github, "acme/web-app", "release-published", RetryPolicy(max_attempts=1))
    d.logger = MagicMock()
    return d


def test_dispatch_names_target_and_passes_tag(dispatcher, mock_github):
    tag = VersionTag(major=1, minor=0, patch=2)
    commit = CommitRef(sha="abc123", message="fix: x\n\nbody")

    payload = dispatcher.dispatch(tag, commit)

    assert payload == {"tag": "v1.0.2", "sha": "abc123", "message": "fix: x"}
    mock_github.get_repo.assert_called_once_with("acme/web-app")
    mock_github.get_repo.return_value.create_repository_dispatch.assert_called_once_with(
        "release-published", client_payload=payload
    )


def test_dispatch_failure(dispatcher, mock_github):
    mock_github.get_repo.return_value.create_repository_dispatch.side_effect = GithubException(404, {"message": "Not Found"})
    with pytest.raises(DispatchFailed, match="Failed to dispatch release-published for v1.0.2"):
        dispatcher.dispatch(VersionTag(major=1, minor=0, patch=2), CommitRef(sha="abc123"))
