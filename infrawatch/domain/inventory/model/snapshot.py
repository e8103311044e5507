from datetime import datetime

from infrawatch.domain.inventory.model.cache import CacheStore
from infrawatch.domain.inventory.model.region import RegionsDocument
from infrawatch.domain.inventory.model.service import ServiceCodes
from infrawatch.domain.shared.model.value import Document


class SnapshotMetadata(Document):
    timestamp: datetime
    tool: str = "infrawatch"
    version: str


class Snapshot(Document):
    """The complete merged dataset of one run (complete-data.json).

    Sections are optional because partial runs (regions only, services
    only, no service mapping) produce partial snapshots.
    """

    metadata: SnapshotMetadata
    regions: RegionsDocument | None = None
    services: ServiceCodes | None = None
    services_by_region: CacheStore | None = None

    @property
    def is_complete(self) -> bool:
        return (
            self.regions is not None
            and self.services is not None
            and self.services_by_region is not None
        )
