import logging
from dataclasses import replace

from releaser.clients.s3_client import S3Client
from releaser.errors import ArtifactUploadFailed
from releaser.models import Artifact, ArtifactLocation, ArtifactsConfig
from releaser.utils.logging import setup_logger
from releaser.utils.retry import RetryPolicy

SHA256_METADATA_KEY = "sha256"


class ArtifactStore:
    def __init__(self, config: ArtifactsConfig, retry: RetryPolicy, client: S3Client | None = None):
        self.config: ArtifactsConfig = config
        self.retry: RetryPolicy = retry
        self.client: S3Client = client or S3Client(config.region)
        self.logger: logging.Logger = setup_logger("ArtifactStore")

    def location_for(self, commit_sha: str) -> ArtifactLocation:
        return ArtifactLocation(bucket=self.config.bucket, key=self.config.key_template.format(sha=commit_sha))

    def exists(self, artifact: Artifact) -> bool:
        """True when an object with the same size and digest is already stored for the commit."""
        location = self.location_for(artifact.commit_sha)
        head = self.retry.call(self.client.head, location.bucket, location.key, description=f"Checking {location}")
        if head is None:
            return False
        same_size = head.get("ContentLength") == artifact.size
        same_digest = head.get("Metadata", {}).get(SHA256_METADATA_KEY) == artifact.sha256
        if not (same_size and same_digest):
            self.logger.warning(f"{location} exists but differs from the local bundle, it will be replaced")
        return same_size and same_digest

    def store(self, artifact: Artifact) -> Artifact:
        location = self.location_for(artifact.commit_sha)
        try:
            if self.exists(artifact):
                self.logger.info(f"Artifact for commit {artifact.commit_sha[:7]} already stored at {location}, skipping upload")
                return replace(artifact, location=location, uploaded=False)
            self.retry.call(
                self.client.upload, artifact.path, location.bucket, location.key,
                {SHA256_METADATA_KEY: artifact.sha256},
                description=f"Uploading {location}",
            )
        except Exception as e:
            raise ArtifactUploadFailed(f"Failed to upload artifact {artifact.path} to {location}: {e}") from e
        self.logger.info(f"Stored artifact for commit {artifact.commit_sha[:7]} at {location}")
        return replace(artifact, location=location, uploaded=True)
