from infrawatch.infrastructure.storage.di import StorageProvider
from infrawatch.infrastructure.storage.local import LocalBlobStorage
from infrawatch.infrastructure.storage.memory import InMemoryBlobStorage
from infrawatch.infrastructure.storage.s3 import S3BlobStorage

__all__ = [
    "InMemoryBlobStorage",
    "LocalBlobStorage",
    "S3BlobStorage",
    "StorageProvider",
]
