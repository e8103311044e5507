"""Per-region TTL cache resolution on top of the document store."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from infrawatch.config import CacheConfig
from infrawatch.domain.inventory.model.cache import CacheStore, RegionServices
from infrawatch.domain.shared.document_store import DocumentStore

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(UTC)


def is_fresh(age: timedelta, ttl: timedelta) -> bool:
    """A record is fresh strictly below the TTL; an age equal to the TTL is stale."""
    return age < ttl


@dataclass
class CacheResolution:
    fresh: dict[str, RegionServices] = field(default_factory=dict)
    stale: list[str] = field(default_factory=list)

    @property
    def all_fresh(self) -> bool:
        return not self.stale


class CacheManager:
    """Splits requested regions into fresh cache hits and stale keys to refetch."""

    def __init__(
        self,
        documents: DocumentStore,
        config: CacheConfig,
        key: str,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._documents = documents
        self._config = config
        self._key = key
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._config.ttl

    @property
    def checkpoint_each_batch(self) -> bool:
        return self._config.checkpoint_each_batch

    async def load(self) -> CacheStore:
        """Load the cache blob. Missing or malformed content yields an empty store."""
        store = await self._documents.load(self._key, CacheStore)
        if store is None:
            logger.info("No usable service cache found, starting empty")
            return CacheStore()
        logger.info(f"Loaded service cache with {len(store.by_region)} regions")
        return store

    def is_fresh(self, record: RegionServices | None) -> bool:
        if record is None or record.last_fetched is None:
            return False
        fetched = record.last_fetched
        if fetched.tzinfo is None:
            fetched = fetched.replace(tzinfo=UTC)
        return is_fresh(self._clock() - fetched, self.ttl)

    def resolve(
        self,
        store: CacheStore,
        keys: Iterable[str],
        *,
        force_refresh: bool = False,
    ) -> CacheResolution:
        resolution = CacheResolution()
        for key in dict.fromkeys(keys):
            record = store.by_region.get(key)
            if not force_refresh and self.is_fresh(record):
                resolution.fresh[key] = record
            else:
                resolution.stale.append(key)

        if force_refresh:
            logger.info(
                f"Force refresh requested, bypassing cache for {len(resolution.stale)} regions"
            )
        else:
            total = len(resolution.fresh) + len(resolution.stale)
            logger.info(
                f"Cache hit: {len(resolution.fresh)}/{total} regions fresh "
                f"(TTL: {self.ttl}), {len(resolution.stale)} need refresh"
            )
        return resolution

    @staticmethod
    def merge(
        fresh: dict[str, RegionServices],
        refetched: dict[str, RegionServices],
    ) -> dict[str, RegionServices]:
        """Combine cache hits with refetched records; refetched records win."""
        return {**fresh, **refetched}

    async def save(self, store: CacheStore) -> str:
        location = await self._documents.save(self._key, store)
        logger.info(f"Saved service cache ({len(store.by_region)} regions) to {location}")
        return location
