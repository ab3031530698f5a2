import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .commit import CommitRef


class StageName(str, Enum):
    TRIGGER = "trigger"
    VERSION = "version"
    TAG = "tag"
    RELEASE = "release"
    DISPATCH = "dispatch"
    BUILD = "build"
    ARTIFACT = "artifact"
    DEPLOY = "deploy"


class RunStatus(str, Enum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    ABORTED = "aborted"
    FAILED = "failed"


@dataclass
class PipelineRun:
    """Ephemeral record of one pipeline execution.

    Only the side effects of a run (tag, release, stored artifact, live
    version) outlive it.
    """

    commit: CommitRef
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    outputs: dict[StageName, Any] = field(default_factory=dict)
    status: RunStatus = RunStatus.RUNNING
    stage: StageName | None = None
    error: BaseException | None = None

    def enter(self, stage: StageName) -> None:
        self.stage = stage

    def record(self, stage: StageName, output: Any) -> None:
        self.outputs[stage] = output

    def output(self, stage: StageName) -> Any:
        return self.outputs.get(stage)

    def succeed(self) -> None:
        self.status = RunStatus.SUCCEEDED
        self.stage = None

    def abort(self, stage: StageName, error: BaseException | None = None) -> None:
        self.status = RunStatus.ABORTED
        self.stage = stage
        self.error = error

    def fail(self, error: BaseException) -> None:
        self.status = RunStatus.FAILED
        self.error = error

    def describe(self) -> str:
        stage = self.stage.value if self.stage else "pipeline"
        match self.status:
            case RunStatus.ABORTED:
                return f"aborted-at-stage({stage})"
            case RunStatus.FAILED:
                return f"failed-at-stage({stage})"
            case _:
                return self.status.value
