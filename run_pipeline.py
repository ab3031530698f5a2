#!/usr/bin/env python3
import os
import sys
import argparse
from releaser.clients.github_client import GitHubClient, is_transient_github_error
from releaser.models import RunStatus
from releaser.repositories import ConfigRepository
from releaser.services.commit_source import CommitSource, load_event, parse_push_event
from releaser.services.pipeline_runner import PipelineRunner
from releaser.utils.logging import setup_logger
from releaser.utils.retry import RetryPolicy

ROOT_DIR = os.path.dirname(os.path.abspath(__file__))


def main():
    parser = argparse.ArgumentParser(description='Tag, release, build and deploy the pushed commit')
    parser.add_argument('--config', default=os.environ.get("PIPELINE_CONFIG", f"{ROOT_DIR}/pipeline.yaml"), help='Pipeline config file')
    parser.add_argument('--event', default=os.environ.get("GITHUB_EVENT_PATH"), help='Push event JSON file')
    parser.add_argument('--dry-run', action='store_true', help='Resolve the next version without making any changes')
    args = parser.parse_args()

    logger = setup_logger("ReleasePipeline")

    try:
        if not args.event:
            raise ValueError("No push event given, set GITHUB_EVENT_PATH or pass --event")
        config = ConfigRepository(args.config).load()
        event = parse_push_event(load_event(args.event))
        repository = config.repository or event.repository or os.environ.get("GITHUB_REPOSITORY")
        if not repository:
            raise ValueError("Repository is not configured and the event does not name one")
        logger.info(f"Starting release pipeline for {repository}@{event.commit.sha} with config {args.config}")

        github = GitHubClient()
        retry = RetryPolicy.from_config(config.retry).with_predicate(is_transient_github_error)
        commit = CommitSource(github, repository, retry).get_commit(event.commit.sha)
        runner = PipelineRunner.from_config(config, commit, github, repository, ref=event.ref, dry_run=args.dry_run)
        run = runner.run()
        logger.info(f"Release pipeline finished: {run.describe()}")
        return 1 if run.status == RunStatus.FAILED else 0
    except Exception as e:
        logger.error(f"Release pipeline failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
