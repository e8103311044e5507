"""Blob storage port shared by the cache, change history and output documents."""

from abc import abstractmethod
from typing import Protocol

from infrawatch.domain.shared.port import Port


class BlobStorage(Port, Protocol):
    """Key-value blob store (local disk, object store, memory)."""

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the blob stored under key, or None if it does not exist."""
        ...

    @abstractmethod
    async def put(self, key: str, data: bytes, *, content_type: str = "application/json") -> str:
        """Store data under key, replacing any previous blob. Returns its location."""
        ...
