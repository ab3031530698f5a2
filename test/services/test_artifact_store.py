from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from releaser.errors import ArtifactUploadFailed
from releaser.models import Artifact, ArtifactLocation, ArtifactsConfig
from releaser.services.artifact_store import ArtifactStore
from releaser.utils.retry import RetryPolicy


@pytest.fixture
def mock_s3():
    client = MagicMock()
    client.head.return_value = None
    return client


@pytest.fixture
def store(mock_s3):
    s = ArtifactStore(ArtifactsConfig(bucket="my-eb-bucket"), RetryPolicy(max_attempts=2, sleep=MagicMock()), client=mock_s3)
    s.logger = MagicMock()
    return s


@pytest.fixture
def artifact():
    return Artifact(commit_sha="abc123", path="/ws/deploy.zip", size=2048, sha256="f" * 64)


def test_location_is_keyed_by_commit(store):
    assert store.location_for("abc123") == ArtifactLocation(bucket="my-eb-bucket", key="deploy-abc123.zip")


def test_store_uploads_new_artifact(store, mock_s3, artifact):
    stored = store.store(artifact)

    mock_s3.upload.assert_called_once_with("/ws/deploy.zip", "my-eb-bucket", "deploy-abc123.zip", {"sha256": "f" * 64})
    assert stored.uploaded is True
    assert stored.location == ArtifactLocation(bucket="my-eb-bucket", key="deploy-abc123.zip")
    assert str(stored.location) == "s3://my-eb-bucket/deploy-abc123.zip"


def test_store_skips_identical_artifact(store, mock_s3, artifact):
    mock_s3.head.return_value = {"ContentLength": 2048, "Metadata": {"sha256": "f" * 64}}

    stored = store.store(artifact)

    mock_s3.upload.assert_not_called()
    assert stored.uploaded is False
    assert stored.location.key == "deploy-abc123.zip"


def test_store_replaces_differing_artifact(store, mock_s3, artifact):
    mock_s3.head.return_value = {"ContentLength": 1999, "Metadata": {"sha256": "0" * 64}}

    stored = store.store(artifact)

    mock_s3.upload.assert_called_once()
    assert stored.uploaded is True
    store.logger.warning.assert_called_once()


def test_upload_is_retried_then_fails(store, mock_s3, artifact):
    mock_s3.upload.side_effect = ClientError({"Error": {"Code": "SlowDown", "Message": "Reduce your request rate"}}, "PutObject")

    with pytest.raises(ArtifactUploadFailed) as excinfo:
        store.store(artifact)

    assert mock_s3.upload.call_count == 2
    assert "s3://my-eb-bucket/deploy-abc123.zip" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, ClientError)


def test_custom_key_template(mock_s3, artifact):
    store = ArtifactStore(ArtifactsConfig(bucket="b", key_template="web/{sha}/bundle.zip"), RetryPolicy(max_attempts=1), client=mock_s3)
    assert store.store(artifact).location.key == "web/abc123/bundle.zip"
