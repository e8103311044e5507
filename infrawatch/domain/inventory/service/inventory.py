"""InventoryService - one end-to-end inventory run."""

import asyncio
import logging
import math
import re
import time
from collections import Counter
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime

import logfire

from infrawatch import __version__
from infrawatch.config import (
    BatchConfig,
    BatchSettings,
    DirectoryConfig,
    PerformanceConfig,
    StorageConfig,
)
from infrawatch.domain.inventory.model.cache import CacheStore, CacheSummary, RegionServices
from infrawatch.domain.inventory.model.directory import DirectoryEntry
from infrawatch.domain.inventory.model.region import Region, RegionsDocument
from infrawatch.domain.inventory.model.service import ServiceCodes, ServiceInfo, ServicesDocument
from infrawatch.domain.inventory.model.snapshot import Snapshot, SnapshotMetadata
from infrawatch.domain.inventory.port.launch_feed import LaunchFeed
from infrawatch.domain.inventory.service.batch import BatchOrchestrator, BatchOutcome
from infrawatch.domain.inventory.service.cache import CacheManager, utcnow
from infrawatch.domain.inventory.service.fetcher import PagedFetcher
from infrawatch.domain.shared.document_store import DocumentStore
from infrawatch.domain.shared.service import Service
from infrawatch.domain.tracking.model.report import ChangeReport
from infrawatch.domain.tracking.service.tracker import ChangeTracker
from infrawatch.util.retry import Sleep

logger = logging.getLogger(__name__)

REGION_CODE = re.compile(r"/regions/([a-z0-9-]+)$")
AVAILABILITY_ZONE_ID = re.compile(r"/availability-zones/([a-z0-9-]+)$")
SERVICE_CODE = re.compile(r"/services/([a-z0-9-]+)$")


def extract_codes(entries: Iterable[DirectoryEntry], pattern: re.Pattern[str]) -> list[str]:
    """Sorted, de-duplicated identifiers captured from entry paths."""
    codes = {m.group(1) for entry in entries if (m := pattern.search(entry.path))}
    return sorted(codes)


def rate_runtime(seconds: float, config: PerformanceConfig) -> str:
    if seconds > config.good_threshold:
        return "Slow"
    if seconds > config.excellent_threshold:
        return "Good"
    return "Excellent"


def format_runtime(seconds: float) -> str:
    minutes = int(seconds // 60)
    if minutes > 0:
        return f"{minutes}m {seconds % 60:.0f}s"
    return f"{seconds:.2f}s"


@dataclass
class RunOptions:
    regions_only: bool = False
    services_only: bool = False
    include_service_mapping: bool = False
    force_refresh: bool = False
    track_changes: bool = True


@dataclass
class RunResult:
    """Outcome of one inventory run."""

    snapshot: Snapshot
    regions: RegionsDocument | None = None
    services: ServicesDocument | None = None
    changes: ChangeReport | None = None
    locations: dict[str, str] = field(default_factory=dict)
    runtime: float = 0.0
    rating: str = "Excellent"


class InventoryService(Service):
    """Discovers regions and services, maps services to regions and tracks changes.

    Lookups of names and parent regions go through a BatchOrchestrator so a
    single failed lookup degrades to a fallback value instead of failing the
    run. Listing failures that exhaust the retry budget propagate.
    """

    fetcher: PagedFetcher
    cache: CacheManager
    documents: DocumentStore
    launch_feed: LaunchFeed
    tracker: ChangeTracker
    directory: DirectoryConfig
    batches: BatchConfig
    storage: StorageConfig
    performance: PerformanceConfig
    sleep: Sleep = asyncio.sleep
    clock: Callable[[], datetime] = utcnow
    timer: Callable[[], float] = time.monotonic

    def _orchestrator(self, settings: BatchSettings, label: str) -> BatchOrchestrator:
        return BatchOrchestrator(settings, label=label, sleep=self.sleep, clock=self.timer)

    async def discover_regions(self) -> RegionsDocument:
        """List regions with display names, AZ counts and launch metadata."""
        regions_path = self.directory.regions_path
        az_path = self.directory.availability_zones_path

        codes = extract_codes(
            await self.fetcher.fetch_all(regions_path, recursive=False), REGION_CODE
        )
        logger.info(f"Discovered {len(codes)} regions")

        az_ids = extract_codes(
            await self.fetcher.fetch_all(az_path, recursive=False), AVAILABILITY_ZONE_ID
        )
        logger.info(f"Found {len(az_ids)} availability zones, mapping to regions")

        parents = await self._orchestrator(
            self.batches.availability_zones, "availability zones"
        ).process(az_ids, lambda az_id: self.fetcher.fetch_one(f"{az_path}/{az_id}/parent-region"))
        az_counts = Counter(outcome.value for outcome in parents.values() if outcome.value)
        logger.info(f"Mapped {len(az_ids)} availability zones to {len(az_counts)} regions")

        launches = await self.launch_feed.fetch_launch_data()

        names = await self._orchestrator(self.batches.region_names, "region names").process(
            codes, lambda code: self.fetcher.fetch_one(f"{regions_path}/{code}/longName")
        )

        regions = []
        for code in codes:
            name = names[code].value
            launch = launches.get(code)
            if not name:
                logger.info(f"  {code}: name not available, using code")
            regions.append(
                Region(
                    code=code,
                    name=name or code,
                    availability_zones=az_counts.get(code, 0),
                    launch_date=launch.launch_date if launch else None,
                    blog_url=launch.blog_url if launch else None,
                )
            )

        return RegionsDocument(count=len(regions), regions=regions, timestamp=self.clock())

    async def discover_services(self) -> ServicesDocument:
        """List services with display names."""
        services_path = self.directory.services_path

        codes = extract_codes(
            await self.fetcher.fetch_all(services_path, recursive=False), SERVICE_CODE
        )
        logger.info(f"Discovered {len(codes)} services, fetching names")

        names = await self._orchestrator(self.batches.service_names, "service names").process(
            codes, lambda code: self.fetcher.fetch_one(f"{services_path}/{code}/longName")
        )

        services = [ServiceInfo(code=code, name=names[code].value or code) for code in codes]
        missing = [code for code in codes if not names[code].value]
        if missing:
            logger.info(
                f"{len(missing)} services had no longName (using code as name): "
                + ", ".join(missing)
            )

        return ServicesDocument(count=len(services), services=services, timestamp=self.clock())

    async def fetch_services_by_region(
        self,
        region_codes: list[str],
        service_codes: list[str],
        *,
        force_refresh: bool = False,
    ) -> CacheStore:
        """Map every region to its services, refetching only stale cache entries.

        Returns the mapping for the requested regions. The persisted cache
        keeps records for regions that were not requested.
        """
        with logfire.span("FetchServicesByRegion"):
            store = await self.cache.load()
            resolution = self.cache.resolve(store, region_codes, force_refresh=force_refresh)

            refetched: dict[str, RegionServices] = {}
            if resolution.all_fresh:
                logger.info(
                    f"All {len(resolution.fresh)} regions loaded from cache, no API calls needed"
                )
            else:
                orchestrator = self._orchestrator(self.batches.service_by_region, "regions")

                async def checkpoint(outcomes: Mapping[str, BatchOutcome[RegionServices]]) -> None:
                    partial = CacheManager.merge(store.by_region, self._records(outcomes))
                    await self.cache.save(CacheStore(by_region=partial, summary=store.summary))

                outcomes = await orchestrator.process(
                    resolution.stale,
                    self._fetch_region_services,
                    on_batch_complete=checkpoint if self.cache.checkpoint_each_batch else None,
                )
                refetched = self._records(outcomes)

            combined = CacheManager.merge(resolution.fresh, refetched)
            summary = self._summarize(
                combined, region_codes, service_codes, resolution.fresh, refetched
            )

            logger.info(
                f"Completed service mapping for {summary.total_regions} regions "
                f"(fetched: {summary.fetched_regions}, cached: {summary.cached_regions}, "
                f"average services per region: {summary.average_services_per_region})"
            )

            await self.cache.save(
                CacheStore(by_region=CacheManager.merge(store.by_region, combined), summary=summary)
            )
            return CacheStore(by_region=combined, summary=summary)

    async def _fetch_region_services(self, region_code: str) -> RegionServices:
        path = f"{self.directory.regions_path}/{region_code}/services"
        entries = await self.fetcher.fetch_all(path, recursive=True)
        services = extract_codes(entries, SERVICE_CODE)
        record = RegionServices.fetched(region_code, services, self.clock())
        logger.info(f"  {region_code}: {record.service_count} services")
        return record

    @staticmethod
    def _records(outcomes: Mapping[str, BatchOutcome[RegionServices]]) -> dict[str, RegionServices]:
        return {
            code: outcome.value
            if outcome.ok and outcome.value is not None
            else RegionServices.degraded(code, outcome.error or "unknown error")
            for code, outcome in outcomes.items()
        }

    def _summarize(
        self,
        combined: dict[str, RegionServices],
        region_codes: list[str],
        service_codes: list[str],
        fresh: dict[str, RegionServices],
        refetched: dict[str, RegionServices],
    ) -> CacheSummary:
        counts = [record.service_count for record in combined.values()]
        # Half-up rounding, matching the summaries already on disk
        average = math.floor(sum(counts) / len(counts) + 0.5) if counts else 0
        return CacheSummary(
            total_regions=len(set(region_codes)),
            total_services=len(service_codes),
            average_services_per_region=average,
            cached_regions=len(fresh),
            fetched_regions=len(refetched),
            timestamp=self.clock(),
        )

    async def run(self, options: RunOptions | None = None) -> RunResult:
        """Run discovery, service mapping, output writing and change tracking."""
        options = options or RunOptions()
        started = self.timer()
        keys = self.storage.keys

        with logfire.span("InventoryRun"):
            metadata = SnapshotMetadata(timestamp=self.clock(), version=__version__)
            result = RunResult(snapshot=Snapshot(metadata=metadata))

            if not options.services_only:
                result.regions = await self.discover_regions()
                result.locations["regions"] = await self.documents.save(
                    keys.regions, result.regions
                )

            if not options.regions_only:
                result.services = await self.discover_services()
                result.locations["services"] = await self.documents.save(
                    keys.services, result.services
                )

            mapping = None
            if options.include_service_mapping and result.regions and result.services:
                mapping = await self.fetch_services_by_region(
                    [region.code for region in result.regions.regions],
                    [service.code for service in result.services.services],
                    force_refresh=options.force_refresh,
                )

            result.snapshot = Snapshot(
                metadata=metadata,
                regions=result.regions,
                services=ServiceCodes.from_services(result.services) if result.services else None,
                services_by_region=mapping,
            )
            result.locations["complete"] = await self.documents.save(keys.complete, result.snapshot)

            if self.storage.archive_snapshots:
                stamp = int(metadata.timestamp.timestamp() * 1000)
                archive_key = f"{keys.history_prefix}/complete-data-{stamp}.json"
                result.locations["archive"] = await self.documents.save(
                    archive_key, result.snapshot
                )

            if options.track_changes and result.snapshot.is_complete:
                result.changes = await self.tracker.detect_and_track(result.snapshot)
            elif options.track_changes:
                logger.info("Skipping change tracking: snapshot is partial")

        result.runtime = self.timer() - started
        result.rating = rate_runtime(result.runtime, self.performance)
        logger.info(f"Total runtime: {format_runtime(result.runtime)} ({result.rating})")
        return result
