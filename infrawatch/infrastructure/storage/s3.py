"""S3 adapter for the BlobStorage port."""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from infrawatch import __version__
from infrawatch.domain.shared.error import StorageUnavailableError
from infrawatch.domain.shared.port.blob_storage import BlobStorage

logger = logging.getLogger(__name__)

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


class S3BlobStorage(BlobStorage):
    """Stores blobs as objects under ``s3://bucket/prefix/``.

    The boto3 client is blocking, so calls run in a worker thread.
    Each put replaces the whole object, which S3 applies atomically.
    """

    def __init__(self, client: Any, bucket: str, prefix: str = "") -> None:
        self._client = client
        self.bucket = bucket
        self.prefix = prefix.strip("/")

    def _key(self, key: str) -> str:
        key = key.lstrip("/")
        return f"{self.prefix}/{key}" if self.prefix else key

    async def get(self, key: str) -> bytes | None:
        object_key = self._key(key)
        try:
            response = await asyncio.to_thread(
                self._client.get_object, Bucket=self.bucket, Key=object_key
            )
            return await asyncio.to_thread(response["Body"].read)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return None
            raise StorageUnavailableError(
                f"Failed to read s3://{self.bucket}/{object_key}: {e}"
            ) from e
        except BotoCoreError as e:
            raise StorageUnavailableError(
                f"Failed to read s3://{self.bucket}/{object_key}: {e}"
            ) from e

    async def put(self, key: str, data: bytes, *, content_type: str = "application/json") -> str:
        object_key = self._key(key)
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=object_key,
                Body=data,
                ContentType=content_type,
                Metadata={
                    "generated-at": datetime.now(UTC).isoformat(),
                    "version": __version__,
                },
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageUnavailableError(
                f"Failed to write s3://{self.bucket}/{object_key}: {e}"
            ) from e

        location = f"s3://{self.bucket}/{object_key}"
        logger.debug(f"Saved {len(data)} bytes to {location}")
        return location
