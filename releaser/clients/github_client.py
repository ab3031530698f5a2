import os
import logging
import requests
from github import Auth, Github, GithubException, GithubIntegration, Repository
logger = logging.getLogger(__name__)


def is_transient_github_error(error: Exception) -> bool:
    if isinstance(error, GithubException):
        return error.status == 429 or error.status >= 500
    return isinstance(error, (requests.exceptions.ConnectionError, requests.exceptions.Timeout))


class GitHubClient:
    def __init__(self):
        token = os.getenv("GITHUB_TOKEN")
        app_id = os.getenv("GITHUB_APP_ID")
        install_id = os.getenv("GITHUB_APP_INSTALLATION_ID")
        private_key = os.getenv("GITHUB_APP_PRIVATE_KEY")
        if app_id and install_id and private_key:
            integration = GithubIntegration(auth=Auth.AppAuth(int(app_id), private_key))
            token = integration.get_access_token(int(install_id)).token
        if not token:
            logger.error("GITHUB_TOKEN or GitHub App credentials env vars are mandatory")
            raise EnvironmentError("Missing GitHub credentials")
        self.client: Github = Github(auth=Auth.Token(token))

    def get_repo(self, full_name: str) -> Repository.Repository:
        return self.client.get_repo(full_name)
