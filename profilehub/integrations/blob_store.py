"""S3 object storage for profile photos.

Photos are written as private objects. Clients only ever see time-limited
presigned URLs, never a public object URL.
"""

import logging
import os
import re
import time
import uuid
from typing import Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from dotenv import load_dotenv

from profilehub.errors import DeleteError, UploadError

load_dotenv()

logger = logging.getLogger(__name__)

KEY_PREFIX = "user-photos"
LEGACY_URL_MARKER = ".amazonaws.com/"

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(name: str) -> str:
    """Reduce an uploaded filename to a safe object-key component."""
    base = os.path.basename(name or "")
    cleaned = _UNSAFE_NAME_CHARS.sub("-", base).strip("-.")
    return cleaned[:100] or "photo"


class S3BlobStore:
    """Client for the photo bucket."""

    def __init__(
        self,
        bucket_name: Optional[str] = None,
        *,
        region: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client=None,
    ):
        """Initialize the blob store.

        Args:
            bucket_name: Bucket holding photos. If None, reads S3_BUCKET_NAME.
            region: AWS region. If None, reads AWS_REGION (defaults to us-east-1).
            access_key: If None, reads AWS_ACCESS_KEY_ID.
            secret_key: If None, reads AWS_SECRET_ACCESS_KEY.
            endpoint_url: Optional S3-compatible endpoint (MinIO, localstack).
            client: Pre-built boto3 S3 client, mainly for tests.
        """
        self.bucket_name = bucket_name or os.getenv("S3_BUCKET_NAME", "user-images")
        self.region = region or os.getenv("AWS_REGION", "us-east-1")
        self.access_key = access_key or os.getenv("AWS_ACCESS_KEY_ID")
        self.secret_key = secret_key or os.getenv("AWS_SECRET_ACCESS_KEY")
        self.endpoint_url = endpoint_url or os.getenv("S3_ENDPOINT_URL") or None
        self.client = client or boto3.client(
            "s3",
            region_name=self.region,
            aws_access_key_id=self.access_key,
            aws_secret_access_key=self.secret_key,
            endpoint_url=self.endpoint_url,
        )

    def check_configuration(self) -> bool:
        """Log a warning when credentials are missing. Uploads fail until they are set."""
        if self.access_key and self.secret_key:
            return True
        logger.warning(
            "AWS credentials not found (AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY). "
            "Photo uploads will fail until they are configured."
        )
        return False

    def build_key(self, name: str) -> str:
        """Collision-resistant object key: time prefix, random suffix, original name."""
        millis = int(time.time() * 1000)
        return f"{KEY_PREFIX}/{millis}-{uuid.uuid4().hex[:8]}-{sanitize_filename(name)}"

    def locator_for(self, key: str) -> str:
        return f"s3://{self.bucket_name}/{key}"

    def parse_locator(self, locator: str) -> Tuple[str, str]:
        """Split a locator into (bucket, key).

        Understands ``s3://bucket/key`` and legacy
        ``https://bucket.s3.amazonaws.com/key`` values.
        """
        if locator.startswith("s3://"):
            bucket, _, key = locator[len("s3://"):].partition("/")
            if bucket and key:
                return bucket, key
        elif LEGACY_URL_MARKER in locator:
            return self.bucket_name, locator.split(LEGACY_URL_MARKER, 1)[1]
        raise ValueError(f"Unrecognised photo locator: {locator!r}")

    def upload(self, data: bytes, name: str, mime_type: str) -> str:
        """Store a photo as a private object and return its locator.

        Raises:
            UploadError: If the object could not be written
        """
        key = self.build_key(name)
        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=mime_type,
                ACL="private",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error uploading {key} to S3: {type(e).__name__}: {str(e)}")
            raise UploadError(detail=str(e)) from e
        logger.info(f"Uploaded photo to S3: {key}")
        return self.locator_for(key)

    def delete(self, locator: Optional[str]) -> None:
        """Delete a photo. A missing locator is a no-op.

        Raises:
            DeleteError: If the object could not be deleted
        """
        if not locator:
            return
        try:
            bucket, key = self.parse_locator(locator)
            self.client.delete_object(Bucket=bucket, Key=key)
        except (ValueError, BotoCoreError, ClientError) as e:
            logger.error(f"Error deleting {locator} from S3: {type(e).__name__}: {str(e)}")
            raise DeleteError(detail=str(e)) from e
        logger.info(f"Deleted photo from S3: {key}")

    def signed_url(self, locator: Optional[str], ttl_seconds: int = 3600) -> Optional[str]:
        """Presigned GET URL for a photo, or None if it cannot be produced."""
        if not locator:
            return None
        try:
            bucket, key = self.parse_locator(locator)
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (ValueError, BotoCoreError, ClientError) as e:
            logger.error(f"Error generating signed URL for {locator}: {type(e).__name__}: {str(e)}")
            return None
