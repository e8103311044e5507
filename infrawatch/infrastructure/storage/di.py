"""DI provider for blob storage."""

import logging

import boto3
from dishka import Provider, provide

from infrawatch.config import Config, StorageConfig
from infrawatch.domain.shared.document_store import DocumentStore
from infrawatch.domain.shared.error import ConfigurationError
from infrawatch.domain.shared.port.blob_storage import BlobStorage
from infrawatch.infrastructure.storage.local import LocalBlobStorage
from infrawatch.infrastructure.storage.memory import InMemoryBlobStorage
from infrawatch.infrastructure.storage.s3 import S3BlobStorage
from infrawatch.util.di.scope import Scope

logger = logging.getLogger(__name__)


def build_storage(config: StorageConfig, aws_region: str) -> BlobStorage:
    """Build the blob storage adapter selected by config.backend.

    Raises:
        ConfigurationError: If the s3 backend is selected without a bucket.
    """
    match config.backend:
        case "s3":
            if not config.bucket:
                raise ConfigurationError(
                    "storage.bucket must be set when storage.backend is 's3'"
                )
            logger.info(f"Using S3 storage: s3://{config.bucket}/{config.prefix}")
            client = boto3.client("s3", region_name=aws_region)
            return S3BlobStorage(client, bucket=config.bucket, prefix=config.prefix)
        case "memory":
            logger.info("Using in-memory storage, nothing will be persisted")
            return InMemoryBlobStorage()
        case _:
            logger.info(f"Using local storage: {config.output_dir}")
            return LocalBlobStorage(config.output_dir)


class StorageProvider(Provider):
    @provide(scope=Scope.APP)
    def get_blob_storage(self, config: Config) -> BlobStorage:
        return build_storage(config.storage, config.aws.region)

    @provide(scope=Scope.APP)
    def get_document_store(self, storage: BlobStorage) -> DocumentStore:
        return DocumentStore(storage)
