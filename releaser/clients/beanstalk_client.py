import logging
import boto3

logger = logging.getLogger(__name__)


class BeanstalkClient:
    def __init__(self, region: str | None = None):
        self.client = boto3.client("elasticbeanstalk", region_name=region)

    def application_version_exists(self, application_name: str, version_label: str) -> bool:
        response = self.client.describe_application_versions(
            ApplicationName=application_name, VersionLabels=[version_label]
        )
        return bool(response.get("ApplicationVersions"))

    def create_application_version(
        self, application_name: str, version_label: str, bucket: str, key: str, description: str | None = None
    ) -> None:
        kwargs = {
            "ApplicationName": application_name,
            "VersionLabel": version_label,
            "SourceBundle": {"S3Bucket": bucket, "S3Key": key},
        }
        if description:
            # the platform caps descriptions at 200 characters
            kwargs["Description"] = description[:200]
        self.client.create_application_version(**kwargs)

    def describe_environment(self, application_name: str, environment_name: str) -> dict | None:
        response = self.client.describe_environments(
            ApplicationName=application_name, EnvironmentNames=[environment_name], IncludeDeleted=False
        )
        environments = response.get("Environments", [])
        return environments[0] if environments else None

    def update_environment(self, application_name: str, environment_name: str, version_label: str) -> dict:
        return self.client.update_environment(
            ApplicationName=application_name, EnvironmentName=environment_name, VersionLabel=version_label
        )

    def wait_until_ready(self, application_name: str, environment_name: str) -> None:
        logger.info(f"Waiting for environment {environment_name} to finish updating")
        waiter = self.client.get_waiter("environment_updated")
        waiter.wait(ApplicationName=application_name, EnvironmentNames=[environment_name])
