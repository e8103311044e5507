from datetime import datetime

from infrawatch.domain.shared.model.value import Document


class RegionServices(Document):
    """Cached list of services available in one region.

    The service list is only ever replaced as a whole. A degraded record
    (failed fetch) carries an error and no last_fetched timestamp, so it is
    never considered fresh.
    """

    region_code: str
    service_count: int = 0
    services: list[str] = []
    last_fetched: datetime | None = None
    error: str | None = None

    @classmethod
    def fetched(cls, region_code: str, services: list[str], at: datetime) -> "RegionServices":
        unique = sorted(set(services))
        return cls(
            region_code=region_code,
            service_count=len(unique),
            services=unique,
            last_fetched=at,
        )

    @classmethod
    def degraded(cls, region_code: str, error: str) -> "RegionServices":
        return cls(region_code=region_code, error=error)

    @property
    def is_degraded(self) -> bool:
        return self.error is not None


class CacheSummary(Document):
    total_regions: int = 0
    total_services: int = 0
    average_services_per_region: int = 0
    cached_regions: int = 0
    fetched_regions: int = 0
    timestamp: datetime | None = None


class CacheStore(Document):
    """Per-region service cache, also the servicesByRegion section of a snapshot."""

    by_region: dict[str, RegionServices] = {}
    summary: CacheSummary | None = None

    def association_map(self) -> dict[str, set[str]]:
        return {code: set(record.services) for code, record in self.by_region.items()}

    def total_service_instances(self) -> int:
        return sum(record.service_count for record in self.by_region.values())
