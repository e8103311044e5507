"""Set differences between two inventory snapshots."""

import datetime as dt
from collections.abc import Mapping
from dataclasses import dataclass, field

from infrawatch.domain.inventory.model.cache import CacheStore
from infrawatch.domain.inventory.model.region import Region, RegionsDocument
from infrawatch.domain.inventory.model.service import ServiceCodes
from infrawatch.domain.inventory.model.snapshot import Snapshot
from infrawatch.domain.tracking.model.history import RegionalService

KnownPairs = Mapping[str, Mapping[str, dt.date]]


@dataclass
class SnapshotDiff:
    new_regions: list[Region] = field(default_factory=list)
    new_services: list[str] = field(default_factory=list)
    new_regional_services: list[RegionalService] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.new_regions or self.new_services or self.new_regional_services)


def detect_new_regions(
    current: RegionsDocument | None, previous: RegionsDocument | None
) -> list[Region]:
    if current is None or previous is None:
        return []
    known = previous.codes()
    return [region for region in current.regions if region.code not in known]


def detect_new_services(
    current: ServiceCodes | None, previous: ServiceCodes | None
) -> list[str]:
    if current is None or previous is None:
        return []
    known = set(previous.services)
    return [code for code in current.services if code not in known]


def detect_new_regional_services(
    current: CacheStore | None,
    previous: CacheStore | None,
    known: KnownPairs | None = None,
) -> list[RegionalService]:
    """Pairs present in current but not in previous.

    A region missing from the previous map contributes its whole row. A
    region whose current fetch failed is skipped; one whose previous
    fetch failed is compared against the pairs already recorded in known,
    or treated as a whole new row when it has none.
    """
    if current is None or previous is None:
        return []

    pairs: list[RegionalService] = []
    for region, record in current.by_region.items():
        if record.is_degraded:
            continue

        before = previous.by_region.get(region)
        if before is not None and before.is_degraded:
            recorded = known.get(region) if known else None
            previous_services = set(recorded) if recorded is not None else None
        elif before is not None:
            previous_services = set(before.services)
        else:
            previous_services = None

        for service in record.services:
            if previous_services is None or service not in previous_services:
                pairs.append(RegionalService(region=region, service=service))
    return pairs


def diff_snapshots(
    current: Snapshot, previous: Snapshot, known: KnownPairs | None = None
) -> SnapshotDiff:
    return SnapshotDiff(
        new_regions=detect_new_regions(current.regions, previous.regions),
        new_services=detect_new_services(current.services, previous.services),
        new_regional_services=detect_new_regional_services(
            current.services_by_region, previous.services_by_region, known
        ),
    )
