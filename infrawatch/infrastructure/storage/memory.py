from infrawatch.domain.shared.port.blob_storage import BlobStorage


class InMemoryBlobStorage(BlobStorage):
    """Process-local blob storage for dry runs and tests."""

    def __init__(self, blobs: dict[str, bytes] | None = None) -> None:
        self.blobs: dict[str, bytes] = dict(blobs or {})
        self.content_types: dict[str, str] = {}

    async def get(self, key: str) -> bytes | None:
        return self.blobs.get(key)

    async def put(self, key: str, data: bytes, *, content_type: str = "application/json") -> str:
        self.blobs[key] = bytes(data)
        self.content_types[key] = content_type
        return f"memory://{key}"
