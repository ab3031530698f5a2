import os
from unittest.mock import MagicMock

import pytest
from github import GithubException

from releaser.models import CommitRef
from releaser.services.commit_source import CommitSource, load_event, parse_dispatch_event, parse_push_event
from releaser.utils.retry import RetryPolicy

ASSETS_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "assets")


@pytest.fixture
def mock_github():
    return MagicMock()


@pytest.fixture
def source(mock_github):
    src = CommitSource(mock_github, "acme/web-app", RetryPolicy(max_attempts=2, sleep=MagicMock()))
    src.logger = MagicMock()
    return src


def test_parse_push_event():
    event = parse_push_event(load_event(os.path.join(ASSETS_DIR, "push_event.json")))
    assert event.ref == "refs/heads/main"
    assert event.repository == "acme/web-app"
    assert event.commit.sha == "abc123def4567890abc123def4567890abc123de"
    assert event.commit.subject == "fix: serve static files from public/"


def test_parse_push_event_without_head_commit():
    event = parse_push_event({"ref": "refs/heads/main", "after": "f00"})
    assert event.commit.sha == "f00"
    assert event.commit.message == ""
    with pytest.raises(ValueError):
        parse_push_event({"ref": "refs/heads/main"})


def test_parse_dispatch_event():
    event = parse_dispatch_event(load_event(os.path.join(ASSETS_DIR, "dispatch_event.json")))
    assert event.tag == "v1.0.2"
    assert event.commit.sha == "abc123def4567890abc123def4567890abc123de"
    with pytest.raises(ValueError, match="'tag' and 'sha'"):
        parse_dispatch_event({"client_payload": {"tag": "v1.0.2"}})


def test_get_commit(source, mock_github):
    gh_commit = MagicMock(sha="abc123")
    gh_commit.commit.message = "fix: thing"
    gh_commit.parents = [MagicMock(sha="p1"), MagicMock(sha="p2")]
    mock_github.get_repo.return_value.get_commit.return_value = gh_commit

    commit = source.get_commit("abc123")

    assert commit == CommitRef(sha="abc123", message="fix: thing", parents=("p1", "p2"))
    mock_github.get_repo.assert_called_with("acme/web-app")


def test_list_tags(source, mock_github):
    t1 = MagicMock()
    t1.name = "v1.0.0"
    t1.commit.sha = "aaa"
    t2 = MagicMock()
    t2.name = "nightly"
    t2.commit.sha = "bbb"
    mock_github.get_repo.return_value.get_tags.return_value = [t1, t2]

    tags = source.list_tags()

    assert [(t.name, t.sha) for t in tags] == [("v1.0.0", "aaa"), ("nightly", "bbb")]


def test_list_tags_retries_transient_errors(mock_github):
    policy = RetryPolicy(max_attempts=3, sleep=MagicMock(), is_transient=lambda e: isinstance(e, GithubException) and e.status >= 500)
    source = CommitSource(mock_github, "acme/web-app", policy)
    mock_github.get_repo.return_value.get_tags.side_effect = [GithubException(502, {}), []]
    assert source.list_tags() == []
    assert mock_github.get_repo.return_value.get_tags.call_count == 2


def test_messages_since_uses_comparison(source, mock_github):
    c1, c2 = MagicMock(), MagicMock()
    c1.commit.message = "feat: a"
    c2.commit.message = "fix: b"
    mock_github.get_repo.return_value.compare.return_value.commits = [c1, c2]

    head = CommitRef(sha="head", message="fix: b")
    assert source.messages_since("base", head) == ["feat: a", "fix: b"]
    mock_github.get_repo.return_value.compare.assert_called_once_with("base", "head")


def test_messages_since_without_base(source, mock_github):
    head = CommitRef(sha="head", message="first commit")
    assert source.messages_since(None, head) == ["first commit"]
    mock_github.get_repo.return_value.compare.assert_not_called()
