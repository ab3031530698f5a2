import logging
from botocore.exceptions import ClientError

from releaser.clients.aws import error_code, error_message
from releaser.clients.beanstalk_client import BeanstalkClient
from releaser.errors import EnvironmentUpdateFailed, InvalidStateTransition, RegistrationFailed
from releaser.models import Artifact, DeploymentConfig, DeploymentState, DeploymentTarget
from releaser.models.deployment import VALID_TRANSITIONS
from releaser.utils.locks import DeploymentLock
from releaser.utils.logging import setup_logger
from releaser.utils.retry import RetryPolicy


def is_duplicate_version_error(error: Exception) -> bool:
    return (
        isinstance(error, ClientError)
        and error_code(error) == "InvalidParameterValue"
        and "already exists" in error_message(error)
    )


class DeploymentReconciler:
    """Drives a platform environment to run the version built for a commit.

    Registration and update happen under the deployment lock for the
    (application, environment) pair, so two runs never interleave their
    transitions of the live version. A failure at any point leaves the
    environment on whatever version it was already running.
    """

    def __init__(
        self,
        config: DeploymentConfig,
        retry: RetryPolicy,
        client: BeanstalkClient | None = None,
        lock: DeploymentLock | None = None,
    ):
        self.config: DeploymentConfig = config
        self.retry: RetryPolicy = retry
        self.client: BeanstalkClient = client or BeanstalkClient(config.region)
        self.lock: DeploymentLock = lock or DeploymentLock(config.lock_dir)
        self.logger: logging.Logger = setup_logger("DeploymentReconciler")

    def transition(self, target: DeploymentTarget, new_state: DeploymentState) -> None:
        if new_state not in VALID_TRANSITIONS[target.state]:
            raise InvalidStateTransition(f"Cannot move {target.environment_name} from {target.state.value} to {new_state.value}")
        if new_state == DeploymentState.FAILED:
            target.failed_stage = target.state
        self.logger.debug(f"{target.environment_name}: {target.state.value} -> {new_state.value}")
        target.state = new_state

    def reconcile(self, artifact: Artifact, version_label: str, description: str | None = None) -> DeploymentTarget:
        if artifact.location is None:
            raise RegistrationFailed(f"Failed to register version {version_label}: artifact has not been stored")
        target = DeploymentTarget(
            application_name=self.config.application_name,
            environment_name=self.config.environment_name,
        )
        with self.lock.hold(*target.lock_key):
            self.register_version(target, artifact, version_label, description)
            self.update_environment(target, version_label)
        return target

    def register_version(
        self, target: DeploymentTarget, artifact: Artifact, version_label: str, description: str | None = None
    ) -> None:
        self.transition(target, DeploymentState.VERSION_REGISTERING)
        app = target.application_name

        def attempt() -> bool:
            if self.client.application_version_exists(app, version_label):
                return False
            try:
                self.client.create_application_version(
                    app, version_label, artifact.location.bucket, artifact.location.key, description
                )
            except ClientError as e:
                if is_duplicate_version_error(e):
                    return False
                raise
            return True

        try:
            created = self.retry.call(attempt, description=f"Registering version {version_label}")
        except Exception as e:
            self.transition(target, DeploymentState.FAILED)
            raise RegistrationFailed(f"Failed to register version {version_label} for application {app}: {e}") from e

        if created:
            self.logger.info(f"Registered version {version_label} for application {app} from {artifact.location}")
        else:
            self.logger.info(f"Version {version_label} is already registered for application {app}")
        self.transition(target, DeploymentState.VERSION_REGISTERED)

    def update_environment(self, target: DeploymentTarget, version_label: str) -> None:
        if target.state != DeploymentState.VERSION_REGISTERED:
            raise InvalidStateTransition(f"Version {version_label} must be registered before updating {target.environment_name}")
        self.transition(target, DeploymentState.ENVIRONMENT_UPDATING)
        app, env = target.application_name, target.environment_name
        try:
            environment = self._describe(app, env)
            target.current_version_label = environment.get("VersionLabel")
            already_live = target.current_version_label == version_label
            if not already_live:
                if environment.get("Status") != "Ready" and self.config.wait_for_ready:
                    self.client.wait_until_ready(app, env)
                self.retry.call(self.client.update_environment, app, env, version_label, description=f"Updating environment {env}")
                if self.config.wait_for_ready:
                    self.client.wait_until_ready(app, env)
                    deployed = self._describe(app, env).get("VersionLabel")
                    if deployed != version_label:
                        raise RuntimeError(f"environment reports version {deployed} after the update")
        except Exception as e:
            self.transition(target, DeploymentState.FAILED)
            raise EnvironmentUpdateFailed(
                f"Failed to update environment {env} of application {app} to version {version_label}: {e}"
            ) from e

        if already_live:
            self.logger.info(f"Environment {env} already runs version {version_label}, nothing to do")
        else:
            previous = target.current_version_label
            target.current_version_label = version_label
            self.logger.info(f"Environment {env} is live on version {version_label} (was {previous})")
        self.transition(target, DeploymentState.LIVE)

    def _describe(self, app: str, env: str) -> dict:
        environment = self.retry.call(self.client.describe_environment, app, env, description=f"Describing environment {env}")
        if environment is None:
            raise RuntimeError(f"environment {env} not found in application {app}")
        return environment
