"""Port for region launch metadata (launch dates and announcement URLs)."""

from abc import abstractmethod
from typing import Protocol

from infrawatch.domain.inventory.model.region import RegionLaunch
from infrawatch.domain.shared.port import Port


class LaunchFeed(Port, Protocol):
    """Fire-and-forget enrichment source.

    Implementations never raise: on any failure they log and return an
    empty mapping so region discovery can continue without launch data.
    """

    @abstractmethod
    async def fetch_launch_data(self) -> dict[str, RegionLaunch]: ...
