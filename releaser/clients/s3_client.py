import logging
import boto3
from botocore.exceptions import ClientError

from releaser.clients.aws import error_code

logger = logging.getLogger(__name__)


class S3Client:
    def __init__(self, region: str | None = None):
        self.client = boto3.client("s3", region_name=region)

    def head(self, bucket: str, key: str) -> dict | None:
        try:
            return self.client.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if error_code(e) in ("404", "NoSuchKey", "NotFound"):
                return None
            raise

    def upload(self, path: str, bucket: str, key: str, metadata: dict[str, str]) -> None:
        logger.info(f"Uploading {path} to s3://{bucket}/{key}")
        self.client.upload_file(path, bucket, key, ExtraArgs={"Metadata": metadata})
