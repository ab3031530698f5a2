import logging
from typing import Any, override

from releaser.clients.aws import is_transient_aws_error
from releaser.clients.github_client import GitHubClient, is_transient_github_error
from releaser.errors import PipelineError, TagAlreadyExists, VersionHistoryCorrupt
from releaser.models import CommitRef, PipelineConfig, PipelineRun, RunStatus, StageName, VersionTag
from releaser.services.artifact_store import ArtifactStore
from releaser.services.build_stage import BuildStage
from releaser.services.commit_source import CommitSource
from releaser.services.deployment_reconciler import DeploymentReconciler
from releaser.services.release_dispatcher import ReleaseDispatcher
from releaser.services.release_manager import ReleaseManager
from releaser.services.service import Service
from releaser.services.tag_publisher import TagPublisher
from releaser.services.version_resolver import VersionResolver
from releaser.utils.logging import setup_logger
from releaser.utils.retry import RetryPolicy


class PipelineRunner(Service):
    """Runs tag → release → build → store → deploy for one commit.

    Each stage starts only once its predecessor produced a result. A stage
    with nothing to hand on aborts the run, a stage error fails it, and in
    both cases the later stages are never called.
    """

    def __init__(
        self,
        config: PipelineConfig,
        commit: CommitRef,
        *,
        commit_source: CommitSource,
        resolver: VersionResolver,
        publisher: TagPublisher,
        releases: ReleaseManager,
        builder: BuildStage,
        store: ArtifactStore,
        reconciler: DeploymentReconciler,
        dispatcher: ReleaseDispatcher | None = None,
        ref: str | None = None,
        dry_run: bool = False,
    ):
        self.config: PipelineConfig = config
        self.commit: CommitRef = commit
        self.commit_source: CommitSource = commit_source
        self.resolver: VersionResolver = resolver
        self.publisher: TagPublisher = publisher
        self.releases: ReleaseManager = releases
        self.builder: BuildStage = builder
        self.store: ArtifactStore = store
        self.reconciler: DeploymentReconciler = reconciler
        self.dispatcher: ReleaseDispatcher | None = dispatcher
        self.ref: str | None = ref
        self.dry_run: bool = dry_run
        self.logger: logging.Logger = setup_logger("PipelineRunner")

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        commit: CommitRef,
        github: GitHubClient,
        repository: str,
        ref: str | None = None,
        dry_run: bool = False,
    ) -> "PipelineRunner":
        retry = RetryPolicy.from_config(config.retry)
        gh_retry = retry.with_predicate(is_transient_github_error)
        aws_retry = retry.with_predicate(is_transient_aws_error)
        return cls(
            config,
            commit,
            commit_source=CommitSource(github, repository, gh_retry),
            resolver=VersionResolver(config.versioning.default_bump, config.versioning.tag_prefix),
            publisher=TagPublisher(github, repository, config.tagging, gh_retry, dry_run=dry_run),
            releases=ReleaseManager(github, repository, config.release, gh_retry),
            builder=BuildStage(config.build),
            store=ArtifactStore(config.artifacts, aws_retry),
            reconciler=DeploymentReconciler(config.deployment, aws_retry),
            dispatcher=ReleaseDispatcher(github, repository, config.handoff.event_type, gh_retry),
            ref=ref,
            dry_run=dry_run,
        )

    @override
    def run(self) -> PipelineRun:
        run = PipelineRun(commit=self.commit)
        self.logger.info(f"Starting pipeline run {run.run_id} for commit {self.commit.sha}")
        try:
            self._execute(run)
        except TagAlreadyExists as e:
            # another run already published this version, nothing left to do here
            if e.sha != self.commit.sha:
                self.logger.warning(
                    f"Tag {e.tag} was published for another commit (ref {e.sha}), "
                    f"commit {self.commit.sha} is left unreleased until the next run"
                )
            run.abort(StageName.TAG, e)
        except Exception as e:
            run.fail(e)
        return self._finish(run)

    def deliver(self, tag_name: str) -> PipelineRun:
        """Build, store and deploy an already published tag.

        Entry point of the dispatched delivery workflow; the tag and commit
        arrive as explicit arguments rather than from ambient state. The tag
        must point at the given commit and its release must exist (it is
        created if missing) before anything is built.
        """
        run = PipelineRun(commit=self.commit)
        self.logger.info(f"Starting delivery run {run.run_id} for {tag_name} at commit {self.commit.sha}")
        try:
            run.enter(StageName.TAG)
            tag = self._published_tag(tag_name)
            if not self._gate(run, StageName.TAG, tag):
                return self._finish(run)

            run.enter(StageName.RELEASE)
            release = self.releases.ensure_release(tag, [self.commit.message], published=True)
            if not self._gate(run, StageName.RELEASE, release):
                return self._finish(run)

            self._deliver(run, tag)
        except Exception as e:
            run.fail(e)
        return self._finish(run)

    def _execute(self, run: PipelineRun) -> None:
        run.enter(StageName.TRIGGER)
        branch_ref = f"refs/heads/{self.config.branch}"
        if self.ref is not None and self.ref != branch_ref:
            self.logger.info(f"Push to {self.ref} is not on {branch_ref}, nothing to release")
            run.abort(StageName.TRIGGER)
            return

        run.enter(StageName.VERSION)
        tag, messages, reused = self._resolve_version()
        if not self._gate(run, StageName.VERSION, tag):
            return

        run.enter(StageName.TAG)
        if reused:
            self.logger.info(f"Commit {self.commit.short_sha} is already tagged {tag.name}, resuming from the release stage")
        else:
            tag = self.publisher.publish(tag)
        if not self._gate(run, StageName.TAG, tag):
            return

        if self.dry_run:
            self.logger.info(
                f"Dry run mode. Would release {tag.name} and deploy {self.commit.sha} to "
                f"{self.config.deployment.application_name}/{self.config.deployment.environment_name}"
            )
            run.succeed()
            return

        run.enter(StageName.RELEASE)
        release = self.releases.ensure_release(tag, messages, published=True)
        if not self._gate(run, StageName.RELEASE, release):
            return

        if self.config.handoff.mode == "dispatch":
            run.enter(StageName.DISPATCH)
            payload = self.dispatcher.dispatch(tag, self.commit)
            if self._gate(run, StageName.DISPATCH, payload):
                run.succeed()
            return

        self._deliver(run, tag)

    def _deliver(self, run: PipelineRun, tag: VersionTag) -> None:
        run.enter(StageName.BUILD)
        artifact = self.builder.build(self.commit)
        if not self._gate(run, StageName.BUILD, artifact):
            return

        run.enter(StageName.ARTIFACT)
        stored = self.store.store(artifact)
        if not self._gate(run, StageName.ARTIFACT, stored):
            return

        run.enter(StageName.DEPLOY)
        target = self.reconciler.reconcile(stored, version_label=self.commit.sha, description=f"{tag.name}: {self.commit.subject}")
        if self._gate(run, StageName.DEPLOY, target):
            run.succeed()

    def _resolve_version(self) -> tuple[VersionTag | None, list[str], bool]:
        try:
            tags = self.commit_source.list_tags()
            existing = self.resolver.find_existing(tags, self.commit)
            if existing is not None:
                return existing.bound_to(self.commit), [self.commit.message], True
            highest = self.resolver.highest(tags)
            base_sha = highest.commit.sha if highest is not None and highest.commit is not None else None
            messages = self.commit_source.messages_since(base_sha, self.commit)
        except VersionHistoryCorrupt:
            raise
        except Exception as e:
            raise PipelineError(f"Failed to read version history: {e}", stage=StageName.VERSION.value) from e
        return self.resolver.resolve(tags, self.commit, messages), messages, False

    def _published_tag(self, tag_name: str) -> VersionTag | None:
        tag = VersionTag.parse(tag_name, self.config.versioning.tag_prefix)
        if tag is None:
            self.logger.warning(f"Tag {tag_name} is not a version tag, refusing to deploy")
            return None
        published = {t.name: t.sha for t in self.commit_source.list_tags()}
        if tag_name not in published:
            self.logger.warning(f"Tag {tag_name} is not published, refusing to deploy")
            return None
        if published[tag_name] != self.commit.sha:
            self.logger.warning(
                f"Tag {tag_name} points at commit {published[tag_name]}, not {self.commit.sha}, refusing to deploy"
            )
            return None
        return tag.bound_to(self.commit)

    def _gate(self, run: PipelineRun, stage: StageName, output: Any) -> bool:
        if output is None:
            run.abort(stage)
            return False
        run.record(stage, output)
        return True

    def _finish(self, run: PipelineRun) -> PipelineRun:
        match run.status:
            case RunStatus.SUCCEEDED:
                self.logger.info(f"Pipeline run {run.run_id} succeeded")
            case RunStatus.ABORTED:
                reason = f": {run.error}" if run.error else ""
                self.logger.warning(f"Pipeline run {run.run_id} {run.describe()}{reason}")
            case RunStatus.FAILED:
                cause = run.error.__cause__
                detail = f" (caused by {type(cause).__name__}: {cause})" if cause else ""
                self.logger.error(f"Pipeline run {run.run_id} {run.describe()}: {run.error}{detail}")
        return run
