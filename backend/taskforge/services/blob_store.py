"""S3-backed blob store for uploaded images.

boto3 is synchronous, so every call is pushed to the threadpool to keep the
event loop free while the upload or delete is in flight.
"""

import logging
from dataclasses import dataclass
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Request
from fastapi.concurrency import run_in_threadpool

from taskforge.config import Settings
from taskforge.errors import DependencyError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredBlob:
    """Location of an uploaded object."""

    key: str
    url: str


class BlobStore:
    """Uploads objects under fresh keys and deletes them by key."""

    def __init__(self, client, bucket: str, public_base_url: str):
        self._client = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "BlobStore":
        client = boto3.client(
            "s3",
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            endpoint_url=settings.s3_endpoint_url,
        )
        return cls(client, settings.s3_bucket, settings.public_base_url)

    def url_for(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    async def upload(self, content: bytes, content_type: str) -> StoredBlob:
        """Store content under a new unique key and return its key and public URL.

        Raises:
            DependencyError: If S3 rejects the upload or is unreachable.
        """
        key = str(uuid4())
        try:
            await run_in_threadpool(
                self._client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
                ACL="public-read",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Upload of {len(content)} bytes to s3://{self.bucket} failed: {e!r}")
            raise DependencyError("blob store", f"upload failed: {e}") from e

        logger.debug(f"Uploaded s3://{self.bucket}/{key} ({content_type}, {len(content)} bytes)")
        return StoredBlob(key=key, url=self.url_for(key))

    async def delete(self, key: str) -> None:
        """Delete the object stored under key.

        Raises:
            DependencyError: If S3 rejects the delete or is unreachable.
        """
        try:
            await run_in_threadpool(self._client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Delete of s3://{self.bucket}/{key} failed: {e!r}")
            raise DependencyError("blob store", f"delete failed: {e}") from e

        logger.debug(f"Deleted s3://{self.bucket}/{key}")


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store
