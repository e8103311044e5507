from dataclasses import dataclass, field

from infrawatch.domain.inventory.model.region import Region
from infrawatch.domain.tracking.model.history import RegionalService


@dataclass
class ChangeReport:
    """What one change-tracking pass found."""

    has_changes: bool
    is_first_run: bool
    new_regions: list[Region] = field(default_factory=list)
    new_services: list[str] = field(default_factory=list)
    new_regional_services: list[RegionalService] = field(default_factory=list)
    summary: str = ""
