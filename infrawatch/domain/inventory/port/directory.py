"""Port for the paginated directory service (SSM Parameter Store)."""

from abc import abstractmethod
from typing import Protocol

from infrawatch.domain.inventory.model.directory import DirectoryPage
from infrawatch.domain.shared.port import Port


class DirectoryClient(Port, Protocol):
    """Read access to a hierarchical key-value directory.

    Implementations raise RateLimitError when the service throttles a call
    and NotFoundError when a single key does not exist. Any other failure
    should surface as ExternalServiceError.
    """

    @abstractmethod
    async def get_by_path(
        self,
        path: str,
        *,
        recursive: bool,
        page_size: int,
        next_token: str | None = None,
    ) -> DirectoryPage:
        """Fetch one page of entries under path."""
        ...

    @abstractmethod
    async def get_single(self, path: str) -> str:
        """Fetch the value stored at exactly path."""
        ...
