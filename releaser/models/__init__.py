from .artifact import Artifact, ArtifactLocation
from .commit import CommitRef
from .config import (
    ArtifactsConfig,
    BuildConfig,
    DeploymentConfig,
    HandoffConfig,
    PipelineConfig,
    ReleaseConfig,
    RetryConfig,
    TaggingConfig,
    VersioningConfig,
)
from .deployment import DeploymentState, DeploymentTarget
from .event import DispatchEvent, PushEvent
from .release import Release
from .run import PipelineRun, RunStatus, StageName
from .version import BumpKind, ExistingTag, VersionTag

__all__ = [
    "Artifact",
    "ArtifactLocation",
    "ArtifactsConfig",
    "BuildConfig",
    "BumpKind",
    "CommitRef",
    "DeploymentConfig",
    "DeploymentState",
    "DeploymentTarget",
    "DispatchEvent",
    "ExistingTag",
    "HandoffConfig",
    "PipelineConfig",
    "PipelineRun",
    "PushEvent",
    "Release",
    "ReleaseConfig",
    "RetryConfig",
    "RunStatus",
    "StageName",
    "TaggingConfig",
    "VersionTag",
    "VersioningConfig",
]
