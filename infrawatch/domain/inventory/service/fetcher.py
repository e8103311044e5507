"""PagedFetcher - paginated reads from the directory service with adaptive retry."""

import asyncio
import logging
from functools import partial

from infrawatch.config import FetchConfig
from infrawatch.domain.inventory.model.directory import DirectoryEntry, DirectoryPage
from infrawatch.domain.inventory.port.directory import DirectoryClient
from infrawatch.domain.shared.error import NotFoundError, RateLimitError
from infrawatch.util.retry import Sleep, exponential_backoff, retry_async

logger = logging.getLogger(__name__)


def is_rate_limited(error: Exception) -> bool:
    return isinstance(error, RateLimitError)


class PagedFetcher:
    """Fetches every entry under a directory path, paging and retrying on throttling.

    Retries happen at two levels, sharing one backoff shape
    (base_delay * 2**attempt):

    1. Per request: a throttled page request is retried in place up to
       per_request_retries times.
    2. Whole operation: if a page still fails with a rate limit, the entire
       listing restarts from the first page, up to max_retries times.

    Each outer retry also slows pagination down: the pause between pages is
    pagination_delay + retry_depth * pagination_delay_increment.

    Errors other than RateLimitError propagate immediately.
    """

    def __init__(
        self,
        client: DirectoryClient,
        config: FetchConfig,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._client = client
        self._config = config
        self._sleep = sleep
        self._backoff = exponential_backoff(config.base_delay)

    async def fetch_all(self, path: str, recursive: bool = True) -> list[DirectoryEntry]:
        """Fetch all entries under path.

        Args:
            path: Directory path to list.
            recursive: Include entries in nested paths.

        Returns:
            Every entry under path, in service order.

        Raises:
            RateLimitError: If throttling persists past the whole-operation budget.
        """
        logger.info(f"Fetching directory entries from: {path}")
        try:
            entries = await retry_async(
                partial(self._fetch_pages, path, recursive),
                max_retries=self._config.max_retries,
                is_retryable=is_rate_limited,
                backoff=self._backoff,
                sleep=self._sleep,
                description=f"Listing of {path}",
            )
        except Exception as e:
            logger.error(f"Failed to fetch entries from {path}: {e}")
            raise

        logger.info(f"Fetched {len(entries)} entries from {path}")
        return entries

    async def fetch_one(self, path: str) -> str | None:
        """Fetch a single value, or None if the key does not exist.

        A missing key is a soft failure so callers can substitute a fallback
        display value. Throttling is retried with the whole-operation budget.
        """
        try:
            return await retry_async(
                lambda _attempt: self._client.get_single(path),
                max_retries=self._config.max_retries,
                is_retryable=is_rate_limited,
                backoff=self._backoff,
                sleep=self._sleep,
                description=f"Lookup of {path}",
            )
        except NotFoundError:
            logger.debug(f"No value at {path}")
            return None

    async def _fetch_pages(
        self, path: str, recursive: bool, retry_depth: int
    ) -> list[DirectoryEntry]:
        entries: list[DirectoryEntry] = []
        next_token: str | None = None
        page_count = 0

        while True:
            page = await retry_async(
                partial(self._request_page, path, recursive, next_token),
                max_retries=self._config.per_request_retries,
                is_retryable=is_rate_limited,
                backoff=self._backoff,
                sleep=self._sleep,
                description=f"Page {page_count + 1} of {path}",
            )
            page_count += 1
            entries.extend(page.entries)
            logger.debug(
                f"  Page {page_count}: +{len(page.entries)} entries (total: {len(entries)})"
            )

            next_token = page.next_token
            if not next_token:
                return entries

            # Adaptive throttling: slow down after each whole-operation retry
            delay = (
                self._config.pagination_delay
                + retry_depth * self._config.pagination_delay_increment
            )
            await self._sleep(delay)

    async def _request_page(
        self, path: str, recursive: bool, next_token: str | None, _attempt: int
    ) -> DirectoryPage:
        return await self._client.get_by_path(
            path,
            recursive=recursive,
            page_size=self._config.page_size,
            next_token=next_token,
        )
