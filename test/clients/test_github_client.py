import pytest
import requests
from github import GithubException
from releaser.clients.github_client import GitHubClient, is_transient_github_error

class DummyIntegration:
    def __init__(self, auth=None):
        self.auth = auth
    def get_access_token(self, installation_id):
        class Token:
            token = "fake-token"
        return Token()

@pytest.fixture(autouse=True)
def patch_integration(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.setenv("GITHUB_APP_ID", "123")
    monkeypatch.setenv("GITHUB_APP_INSTALLATION_ID", "456")
    monkeypatch.setenv("GITHUB_APP_PRIVATE_KEY", "---KEY---")
    monkeypatch.setattr("releaser.clients.github_client.GithubIntegration", DummyIntegration)
    yield

def test_github_client_get_repo(monkeypatch):
    client = GitHubClient()
    dummy = object()
    monkeypatch.setattr(client.client, "get_repo", lambda full_name: dummy)
    assert client.get_repo("org/repo") is dummy


def test_github_client_with_token_only(monkeypatch):
    monkeypatch.delenv("GITHUB_APP_ID", raising=False)
    monkeypatch.setenv("GITHUB_TOKEN", "ghs_token")
    client = GitHubClient()
    assert client.client is not None


def test_missing_credentials(monkeypatch):
    monkeypatch.delenv("GITHUB_APP_ID", raising=False)
    with pytest.raises(EnvironmentError):
        GitHubClient()


@pytest.mark.parametrize("error,transient", [
    (GithubException(502, {"message": "Bad Gateway"}), True),
    (GithubException(429, {"message": "rate limited"}), True),
    (GithubException(422, {"message": "Reference already exists"}), False),
    (GithubException(404, {"message": "Not Found"}), False),
    (requests.exceptions.ConnectionError("reset"), True),
    (ValueError("bad"), False),
])
def test_is_transient_github_error(error, transient):
    assert is_transient_github_error(error) is transient
