"""Unit tests for InventoryService."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from infrawatch.config import (
    BatchConfig,
    BatchSettings,
    CacheConfig,
    DirectoryConfig,
    FetchConfig,
    PerformanceConfig,
    StorageConfig,
)
from infrawatch.domain.inventory.model.region import RegionLaunch
from infrawatch.domain.inventory.port.launch_feed import LaunchFeed
from infrawatch.domain.inventory.service.cache import CacheManager
from infrawatch.domain.inventory.service.fetcher import PagedFetcher
from infrawatch.domain.inventory.service.inventory import (
    InventoryService,
    RunOptions,
    rate_runtime,
)
from infrawatch.domain.shared.error import ExternalServiceError
from infrawatch.domain.tracking.model.report import ChangeReport
from infrawatch.domain.tracking.service.tracker import ChangeTracker

ROOT = "/gi"


@pytest.fixture
def client(directory_client):
    directory_client.tree.update(
        {
            f"{ROOT}/regions": [f"{ROOT}/regions/r2", f"{ROOT}/regions/r1"],
            f"{ROOT}/availability-zones": [
                f"{ROOT}/availability-zones/az1",
                f"{ROOT}/availability-zones/az2",
                f"{ROOT}/availability-zones/az3",
                f"{ROOT}/availability-zones/az4",
            ],
            f"{ROOT}/services": [f"{ROOT}/services/s1", f"{ROOT}/services/s2"],
            f"{ROOT}/regions/r1/services": [
                f"{ROOT}/regions/r1/services/s1",
                f"{ROOT}/regions/r1/services/s2",
            ],
            f"{ROOT}/regions/r2/services": [f"{ROOT}/regions/r2/services/s1"],
        }
    )
    directory_client.values.update(
        {
            f"{ROOT}/availability-zones/az1/parent-region": "r1",
            f"{ROOT}/availability-zones/az2/parent-region": "r1",
            f"{ROOT}/availability-zones/az3/parent-region": "r2",
            f"{ROOT}/regions/r1/longName": "Region One",
            f"{ROOT}/services/s1/longName": "Service One",
        }
    )
    return directory_client


@pytest.fixture
def launch_feed() -> LaunchFeed:
    feed = MagicMock(spec=LaunchFeed)
    feed.fetch_launch_data = AsyncMock(
        return_value={
            "r1": RegionLaunch(
                launch_date="Tue, 14 Jan 2025 18:00:00 GMT",
                blog_url="https://example.com/r1",
            )
        }
    )
    return feed


@pytest.fixture
def tracker() -> ChangeTracker:
    tracker = MagicMock(spec=ChangeTracker)
    tracker.detect_and_track = AsyncMock(
        return_value=ChangeReport(has_changes=False, is_first_run=True)
    )
    return tracker


def build_service(
    client, documents, launch_feed, tracker, sleep, clock, **storage
) -> InventoryService:
    return InventoryService(
        fetcher=PagedFetcher(client, FetchConfig(page_size=10), sleep=sleep),
        cache=CacheManager(documents, CacheConfig(), ".cache-services-by-region.json", clock=clock),
        documents=documents,
        launch_feed=launch_feed,
        tracker=tracker,
        directory=DirectoryConfig(root_path=ROOT),
        batches=BatchConfig(),
        storage=StorageConfig(backend="memory", **storage),
        performance=PerformanceConfig(),
        sleep=sleep,
        clock=clock,
        timer=lambda: 0.0,
    )


@pytest.fixture
def service(client, documents, launch_feed, tracker, sleep, clock) -> InventoryService:
    return build_service(client, documents, launch_feed, tracker, sleep, clock)


class TestDiscovery:
    @pytest.mark.asyncio
    async def test_discover_regions(self, service):
        regions = await service.discover_regions()

        assert regions.count == 2
        r1, r2 = regions.regions
        assert (r1.code, r1.name, r1.availability_zones) == ("r1", "Region One", 2)
        assert r1.launch_date == "Tue, 14 Jan 2025 18:00:00 GMT"
        assert r1.blog_url == "https://example.com/r1"
        # No longName and no launch data: falls back to the code
        assert (r2.code, r2.name, r2.availability_zones) == ("r2", "r2", 1)
        assert r2.launch_date is None

    @pytest.mark.asyncio
    async def test_failed_name_lookup_falls_back_to_code(self, service, client):
        client.failures[f"{ROOT}/regions/r1/longName"] = ExternalServiceError("boom")

        regions = await service.discover_regions()

        assert regions.regions[0].name == "r1"

    @pytest.mark.asyncio
    async def test_discover_services(self, service):
        services = await service.discover_services()

        assert services.names() == {"s1": "Service One", "s2": "s2"}


class TestFetchServicesByRegion:
    @pytest.mark.asyncio
    async def test_fetches_and_caches(self, service, storage):
        mapping = await service.fetch_services_by_region(["r1", "r2"], ["s1", "s2"])

        assert mapping.association_map() == {"r1": {"s1", "s2"}, "r2": {"s1"}}
        assert mapping.summary.total_regions == 2
        assert mapping.summary.total_services == 2
        assert mapping.summary.fetched_regions == 2
        assert mapping.summary.cached_regions == 0
        # (2 + 1) / 2 rounds half up
        assert mapping.summary.average_services_per_region == 2
        assert ".cache-services-by-region.json" in storage.blobs

    @pytest.mark.asyncio
    async def test_fresh_cache_skips_directory_calls(self, service, client, clock):
        await service.fetch_services_by_region(["r1", "r2"], ["s1", "s2"])
        calls_before = len(client.page_calls)
        clock.advance(hours=1)

        mapping = await service.fetch_services_by_region(["r1", "r2"], ["s1", "s2"])

        assert len(client.page_calls) == calls_before
        assert mapping.summary.cached_regions == 2
        assert mapping.summary.fetched_regions == 0

    @pytest.mark.asyncio
    async def test_expired_entries_are_refetched(self, service, client, clock):
        await service.fetch_services_by_region(["r1", "r2"], ["s1", "s2"])
        clock.advance(hours=24)

        mapping = await service.fetch_services_by_region(["r1", "r2"], ["s1", "s2"])

        assert mapping.summary.fetched_regions == 2
        assert mapping.by_region["r1"].last_fetched == clock()

    @pytest.mark.asyncio
    async def test_failed_region_is_recorded_as_degraded(self, service, client):
        client.failures[f"{ROOT}/regions/r2/services"] = ExternalServiceError("boom")

        mapping = await service.fetch_services_by_region(["r1", "r2"], ["s1", "s2"])

        assert mapping.by_region["r1"].service_count == 2
        assert mapping.by_region["r2"].is_degraded
        assert mapping.by_region["r2"].error == "boom"
        assert mapping.by_region["r2"].last_fetched is None

    @pytest.mark.asyncio
    async def test_cache_keeps_regions_not_requested(self, service):
        await service.fetch_services_by_region(["r1", "r2"], ["s1", "s2"])

        mapping = await service.fetch_services_by_region(["r1"], ["s1", "s2"])
        cached = await service.cache.load()

        assert set(mapping.by_region) == {"r1"}
        assert set(cached.by_region) == {"r1", "r2"}

    @pytest.mark.asyncio
    async def test_checkpoints_after_each_batch(
        self, client, documents, launch_feed, tracker, sleep, clock
    ):
        service = build_service(client, documents, launch_feed, tracker, sleep, clock)
        service.cache = CacheManager(
            documents,
            CacheConfig(checkpoint_each_batch=True),
            ".cache-services-by-region.json",
            clock=clock,
        )
        service.cache.save = AsyncMock(wraps=service.cache.save)

        await service.fetch_services_by_region(["r1", "r2"], ["s1", "s2"])

        # One checkpoint for the single batch plus the final save
        assert service.cache.save.await_count == 2

    @pytest.mark.asyncio
    async def test_interrupted_run_leaves_checkpointed_cache(
        self, client, documents, storage, launch_feed, tracker, sleep, clock
    ):
        service = build_service(client, documents, launch_feed, tracker, sleep, clock)
        service.cache = CacheManager(
            documents,
            CacheConfig(checkpoint_each_batch=True),
            ".cache-services-by-region.json",
            clock=clock,
        )
        service.batches = BatchConfig(service_by_region=BatchSettings(size=1))
        await service.fetch_services_by_region(["r1", "r2"], ["s1", "s2"])
        first_fetch = clock()
        clock.advance(hours=24)
        # Cancellation is not absorbed as a per-region failure
        client.failures[f"{ROOT}/regions/r2/services"] = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await service.fetch_services_by_region(["r1", "r2"], ["s1", "s2"])

        # The first batch was checkpointed, the second region keeps its old record
        cached = await service.cache.load()
        assert cached.by_region["r1"].last_fetched == clock()
        assert cached.by_region["r2"].last_fetched == first_fetch
        assert not cached.by_region["r2"].is_degraded
        raw = json.loads(storage.blobs[".cache-services-by-region.json"])
        assert set(raw["byRegion"]) == {"r1", "r2"}


class TestRun:
    @pytest.mark.asyncio
    async def test_full_run_writes_outputs_and_tracks_changes(self, service, storage, tracker):
        result = await service.run(RunOptions(include_service_mapping=True))

        assert result.snapshot.is_complete
        tracker.detect_and_track.assert_awaited_once_with(result.snapshot)
        assert result.changes is not None and result.changes.is_first_run
        assert {"regions.json", "services.json", "complete-data.json"} <= set(storage.blobs)

        complete = json.loads(storage.blobs["complete-data.json"])
        assert complete["services"]["services"] == ["s1", "s2"]
        assert complete["regions"]["regions"][0]["availabilityZones"] == 2
        assert set(complete["servicesByRegion"]["byRegion"]) == {"r1", "r2"}
        assert complete["metadata"]["tool"] == "infrawatch"
        assert result.rating == "Excellent"

    @pytest.mark.asyncio
    async def test_regions_only_run_skips_services_and_tracking(self, service, storage, tracker):
        result = await service.run(RunOptions(regions_only=True, include_service_mapping=True))

        assert result.services is None
        assert result.snapshot.services_by_region is None
        assert "services.json" not in storage.blobs
        tracker.detect_and_track.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_tracking_can_be_disabled(self, service, tracker):
        await service.run(RunOptions(include_service_mapping=True, track_changes=False))

        tracker.detect_and_track.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_archives_snapshot_when_enabled(
        self, client, documents, storage, launch_feed, tracker, sleep, clock
    ):
        service = build_service(
            client, documents, launch_feed, tracker, sleep, clock, archive_snapshots=True
        )

        result = await service.run(RunOptions())

        stamp = int(clock().timestamp() * 1000)
        assert f"history/complete-data-{stamp}.json" in storage.blobs
        assert result.locations["archive"] == f"memory://history/complete-data-{stamp}.json"


class TestRateRuntime:
    @pytest.mark.parametrize(
        ("seconds", "rating"),
        [(10, "Excellent"), (60, "Excellent"), (61, "Good"), (120, "Good"), (121, "Slow")],
    )
    def test_thresholds(self, seconds, rating):
        assert rate_runtime(seconds, PerformanceConfig()) == rating
