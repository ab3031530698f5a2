"""Failure taxonomy of the release pipeline.

Every stage failure carries the stage it happened in and is raised
``from`` the underlying cause, so a run can be diagnosed from its log
without rerunning it.
"""


class PipelineError(Exception):
    stage: str = "pipeline"

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class ConfigurationError(PipelineError):
    stage = "config"


class VersionHistoryCorrupt(PipelineError):
    stage = "version"


class TagAlreadyExists(PipelineError):
    stage = "tag"

    def __init__(self, tag: str, sha: str | None = None):
        detail = f" (points at {sha})" if sha else ""
        super().__init__(f"Tag {tag} already exists{detail}")
        self.tag = tag
        self.sha = sha


class TagPublishFailed(PipelineError):
    stage = "tag"


class ReleaseCreationFailed(PipelineError):
    stage = "release"


class DispatchFailed(PipelineError):
    stage = "dispatch"


class BuildFailed(PipelineError):
    stage = "build"


class ArtifactUploadFailed(PipelineError):
    stage = "artifact"


class RegistrationFailed(PipelineError):
    stage = "deploy"


class EnvironmentUpdateFailed(PipelineError):
    stage = "deploy"


class InvalidStateTransition(RuntimeError):
    pass
