from datetime import datetime

from infrawatch.domain.shared.model.value import Document, ValueObject


class RegionLaunch(ValueObject):
    """Launch metadata for one region, taken from the regions RSS feed."""

    launch_date: str | None = None  # RFC 822 pubDate as published
    blog_url: str | None = None


class Region(Document):
    code: str
    name: str
    availability_zones: int = 0
    launch_date: str | None = None
    blog_url: str | None = None


class RegionsDocument(Document):
    """Contents of regions.json and the regions section of a snapshot."""

    count: int
    regions: list[Region]
    source: str = "ssm"
    timestamp: datetime

    def codes(self) -> set[str]:
        return {r.code for r in self.regions}
