"""Global test fixtures."""

import datetime as dt

import pytest

from infrawatch.domain.inventory.model.directory import DirectoryEntry, DirectoryPage
from infrawatch.domain.shared.document_store import DocumentStore
from infrawatch.domain.shared.error import NotFoundError, RateLimitError
from infrawatch.infrastructure.storage.memory import InMemoryBlobStorage


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeClock:
    """Settable wall clock returning timezone-aware UTC datetimes."""

    def __init__(self, now: dt.datetime) -> None:
        self.now = now

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += dt.timedelta(**kwargs)


class FakeDirectoryClient:
    """In-memory directory tree with scriptable throttling.

    ``tree`` maps a listing path to all entries under it; listings are
    served in pages of the requested size. ``values`` maps single keys
    to values. ``throttle`` maps a path to the number of calls that
    should fail with RateLimitError before succeeding.
    """

    def __init__(
        self,
        tree: dict[str, list[str]] | None = None,
        values: dict[str, str] | None = None,
    ) -> None:
        self.tree = tree or {}
        self.values = values or {}
        self.throttle: dict[str, int] = {}
        self.failures: dict[str, Exception] = {}
        self.page_calls: list[tuple[str, str | None]] = []
        self.single_calls: list[str] = []

    def _maybe_fail(self, path: str) -> None:
        if path in self.failures:
            raise self.failures[path]
        if self.throttle.get(path, 0) > 0:
            self.throttle[path] -= 1
            raise RateLimitError(f"Rate exceeded for {path}")

    async def get_by_path(
        self,
        path: str,
        *,
        recursive: bool,
        page_size: int,
        next_token: str | None = None,
    ) -> DirectoryPage:
        self.page_calls.append((path, next_token))
        self._maybe_fail(path)
        names = self.tree.get(path, [])
        start = int(next_token or 0)
        chunk = names[start : start + page_size]
        end = start + len(chunk)
        return DirectoryPage(
            entries=[DirectoryEntry(path=name, value="") for name in chunk],
            next_token=str(end) if end < len(names) else None,
        )

    async def get_single(self, path: str) -> str:
        self.single_calls.append(path)
        self._maybe_fail(path)
        if path not in self.values:
            raise NotFoundError(f"Parameter not found: {path}")
        return self.values[path]


@pytest.fixture
def storage() -> InMemoryBlobStorage:
    return InMemoryBlobStorage()


@pytest.fixture
def documents(storage: InMemoryBlobStorage) -> DocumentStore:
    return DocumentStore(storage)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(dt.datetime(2025, 3, 10, 12, 0, tzinfo=dt.UTC))


@pytest.fixture
def directory_client() -> FakeDirectoryClient:
    return FakeDirectoryClient()
