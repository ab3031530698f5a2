from dataclasses import field
from typing import Literal
from pydantic.dataclasses import dataclass

from .version import BumpKind

DEFAULT_RELEASE_BODY = "Changes in this Release\n{changes}"


@dataclass(frozen=True)
class VersioningConfig:
    default_bump: BumpKind = "patch"
    tag_prefix: str = "v"


@dataclass(frozen=True)
class TaggingConfig:
    annotated: bool = True
    message: str = "Release {tag}"
    tagger_name: str = "GitHub Action"
    tagger_email: str = "action@github.com"


@dataclass(frozen=True)
class ReleaseConfig:
    title: str = "Release {tag}"
    body: str = DEFAULT_RELEASE_BODY
    draft: bool = False
    prerelease: bool = False


@dataclass(frozen=True)
class BuildConfig:
    commands: list[list[str]] = field(default_factory=lambda: [["npm", "install"], ["npm", "run", "build", "--if-present"]])
    workspace: str = "."
    output: str = "deploy.zip"
    exclude: list[str] = field(default_factory=lambda: [".git*"])
    timeout_seconds: float | None = None


@dataclass(frozen=True)
class ArtifactsConfig:
    bucket: str
    key_template: str = "deploy-{sha}.zip"
    region: str | None = None


@dataclass(frozen=True)
class DeploymentConfig:
    application_name: str
    environment_name: str
    region: str | None = None
    wait_for_ready: bool = True
    lock_dir: str | None = None


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    initial_delay_seconds: float = 1.0
    backoff_factor: float = 2.0
    max_delay_seconds: float = 30.0


@dataclass(frozen=True)
class HandoffConfig:
    mode: Literal["inline", "dispatch"] = "inline"
    event_type: str = "release-published"


@dataclass(frozen=True)
class PipelineConfig:
    artifacts: ArtifactsConfig
    deployment: DeploymentConfig
    repository: str | None = None
    branch: str = "main"
    versioning: VersioningConfig = field(default_factory=VersioningConfig)
    tagging: TaggingConfig = field(default_factory=TaggingConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    handoff: HandoffConfig = field(default_factory=HandoffConfig)
