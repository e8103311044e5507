import datetime as dt

from pydantic import Field

from infrawatch.domain.shared.model.value import Document, DocumentValue


class TrackedRegion(Document):
    name: str
    first_seen: dt.date
    availability_zones: int = 0
    launch_date: dt.date | None = None
    is_new: bool = False


class TrackedService(Document):
    name: str
    first_seen: dt.date
    is_new: bool = False


class EntityRef(DocumentValue):
    """Region or service as listed in a changelog entry."""

    code: str
    name: str


class RegionalService(DocumentValue):
    """A (region, service) availability pair."""

    region: str
    service: str


class ChangeSet(Document):
    new_regions: list[EntityRef] = Field(default_factory=list)
    new_services: list[EntityRef] = Field(default_factory=list)
    new_regional_services: list[RegionalService] = Field(default_factory=list)


class ChangeLogEntry(Document):
    date: dt.date
    changes: ChangeSet = Field(default_factory=ChangeSet)
    summary: str = ""


class ChangeCounts(Document):
    new_regions: int = 0
    new_services: int = 0
    new_regional_services: int = 0


class HistoryMetadata(Document):
    created: dt.date
    last_updated: dt.date
    total_regions: int = 0
    total_services: int = 0
    total_regional_services: int = 0
    changes_since_inception: ChangeCounts = Field(default_factory=ChangeCounts)


class ChangeHistory(Document):
    """Durable record of when each region, service and pair was first seen.

    change_log is ordered most recent first and holds at most one entry
    per calendar date (UTC).
    """

    metadata: HistoryMetadata
    regions: dict[str, TrackedRegion] = Field(default_factory=dict)
    services: dict[str, TrackedService] = Field(default_factory=dict)
    regional_services: dict[str, dict[str, dt.date]] = Field(default_factory=dict)
    change_log: list[ChangeLogEntry] = Field(default_factory=list)

    @classmethod
    def empty(cls, today: dt.date) -> "ChangeHistory":
        return cls(metadata=HistoryMetadata(created=today, last_updated=today))

    def entry_for(self, day: dt.date) -> ChangeLogEntry | None:
        return next((entry for entry in self.change_log if entry.date == day), None)

    def total_regional_services(self) -> int:
        return sum(len(services) for services in self.regional_services.values())
