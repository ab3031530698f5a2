#!/usr/bin/env python3
import os
import sys
import argparse
from releaser.clients.github_client import GitHubClient, is_transient_github_error
from releaser.models import RunStatus
from releaser.repositories import ConfigRepository
from releaser.services.commit_source import CommitSource, load_event, parse_dispatch_event
from releaser.services.pipeline_runner import PipelineRunner
from releaser.utils.logging import setup_logger
from releaser.utils.retry import RetryPolicy

ROOT_DIR = os.path.dirname(os.path.abspath(__file__))


def main():
    parser = argparse.ArgumentParser(description='Build, store and deploy an already published release tag')
    parser.add_argument('--config', default=os.environ.get("PIPELINE_CONFIG", f"{ROOT_DIR}/pipeline.yaml"), help='Pipeline config file')
    parser.add_argument('--event', default=os.environ.get("GITHUB_EVENT_PATH"), help='repository_dispatch event JSON file')
    parser.add_argument('--tag', help='Published tag to deploy (overrides the event payload)')
    parser.add_argument('--sha', help='Commit the tag points at (overrides the event payload)')
    args = parser.parse_args()

    logger = setup_logger("ReleaseDelivery")

    try:
        config = ConfigRepository(args.config).load()
        tag, sha, repository = args.tag, args.sha, config.repository
        if not (tag and sha):
            if not args.event:
                raise ValueError("Pass --tag and --sha, or a repository_dispatch event via GITHUB_EVENT_PATH")
            event = parse_dispatch_event(load_event(args.event))
            tag, sha = tag or event.tag, sha or event.commit.sha
            repository = repository or event.repository
        repository = repository or os.environ.get("GITHUB_REPOSITORY")
        if not repository:
            raise ValueError("Repository is not configured and the event does not name one")
        logger.info(f"Starting delivery of {tag} ({sha}) for {repository} with config {args.config}")

        github = GitHubClient()
        retry = RetryPolicy.from_config(config.retry).with_predicate(is_transient_github_error)
        commit = CommitSource(github, repository, retry).get_commit(sha)
        run = PipelineRunner.from_config(config, commit, github, repository).deliver(tag)
        logger.info(f"Delivery finished: {run.describe()}")
        return 1 if run.status == RunStatus.FAILED else 0
    except Exception as e:
        logger.error(f"Delivery failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
