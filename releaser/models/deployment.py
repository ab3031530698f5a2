from dataclasses import dataclass
from enum import Enum


class DeploymentState(str, Enum):
    IDLE = "idle"
    VERSION_REGISTERING = "version_registering"
    VERSION_REGISTERED = "version_registered"
    ENVIRONMENT_UPDATING = "environment_updating"
    LIVE = "live"
    FAILED = "failed"


# LIVE and FAILED are terminal for a single reconciliation
VALID_TRANSITIONS: dict[DeploymentState, set[DeploymentState]] = {
    DeploymentState.IDLE: {DeploymentState.VERSION_REGISTERING, DeploymentState.FAILED},
    DeploymentState.VERSION_REGISTERING: {DeploymentState.VERSION_REGISTERED, DeploymentState.FAILED},
    DeploymentState.VERSION_REGISTERED: {DeploymentState.ENVIRONMENT_UPDATING, DeploymentState.FAILED},
    DeploymentState.ENVIRONMENT_UPDATING: {DeploymentState.LIVE, DeploymentState.FAILED},
    DeploymentState.LIVE: set(),
    DeploymentState.FAILED: set(),
}


@dataclass
class DeploymentTarget:
    application_name: str
    environment_name: str
    current_version_label: str | None = None
    state: DeploymentState = DeploymentState.IDLE
    failed_stage: DeploymentState | None = None

    @property
    def lock_key(self) -> tuple[str, str]:
        return (self.application_name, self.environment_name)
