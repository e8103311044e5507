"""Snapshot builders for change tracking tests."""

import datetime as dt

import pytest

from infrawatch.domain.inventory.model.cache import CacheStore, RegionServices
from infrawatch.domain.inventory.model.region import Region, RegionsDocument
from infrawatch.domain.inventory.model.service import ServiceCodes
from infrawatch.domain.inventory.model.snapshot import Snapshot, SnapshotMetadata

AT = dt.datetime(2025, 3, 10, 12, 0, tzinfo=dt.UTC)


def build_snapshot(
    regions: list[str] | None = None,
    services: list[str] | None = None,
    by_region: dict[str, list[str] | Exception] | None = None,
) -> Snapshot:
    """Build a snapshot; an Exception in by_region marks that region degraded."""
    return Snapshot(
        metadata=SnapshotMetadata(timestamp=AT, version="test"),
        regions=RegionsDocument(
            count=len(regions),
            regions=[
                Region(code=code, name=code.upper(), availability_zones=3) for code in regions
            ],
            timestamp=AT,
        )
        if regions is not None
        else None,
        services=ServiceCodes(count=len(services), services=services, timestamp=AT)
        if services is not None
        else None,
        services_by_region=CacheStore(
            by_region={
                region: RegionServices.degraded(region, str(value))
                if isinstance(value, Exception)
                else RegionServices.fetched(region, value, AT)
                for region, value in by_region.items()
            }
        )
        if by_region is not None
        else None,
    )


@pytest.fixture
def snapshot():
    return build_snapshot
