import logging
import tempfile
from pathlib import Path, PurePosixPath

from infrawatch.domain.shared.port.blob_storage import BlobStorage

logger = logging.getLogger(__name__)


class LocalBlobStorage(BlobStorage):
    """Stores blobs as files under a base directory.

    Keys are relative POSIX paths; nested keys create subdirectories.
    Writes go to a temp file in the target directory which is then renamed
    over the destination, so a crash never leaves a half-written blob.
    """

    def __init__(self, base_path: str | Path) -> None:
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _safe_path(self, key: str) -> Path:
        """Resolve key within base_path, rejecting path traversal attempts."""
        parts = PurePosixPath(key).parts
        if not parts or PurePosixPath(key).is_absolute() or ".." in parts:
            raise ValueError(f"Invalid storage key: {key}")
        target = self.base_path.joinpath(*parts)
        if not target.resolve().is_relative_to(self.base_path.resolve()):
            raise ValueError(f"Invalid storage key: {key}")
        return target

    async def get(self, key: str) -> bytes | None:
        target = self._safe_path(key)
        if not target.is_file():
            return None
        return target.read_bytes()

    async def put(self, key: str, data: bytes, *, content_type: str = "application/json") -> str:
        target = self._safe_path(key)
        target.parent.mkdir(parents=True, exist_ok=True)

        # Atomic write: write to temp file then rename
        fd, tmp_path = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
        try:
            with open(fd, "wb") as f:
                f.write(data)
            Path(tmp_path).replace(target)
        except Exception:
            Path(tmp_path).unlink(missing_ok=True)
            raise

        logger.debug(f"Wrote {len(data)} bytes to {target}")
        return str(target)
