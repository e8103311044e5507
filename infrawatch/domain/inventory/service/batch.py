"""Bounded-concurrency batch processing with per-item failure isolation."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Hashable, Iterable, Mapping
from dataclasses import dataclass
from typing import Generic, TypeVar

from infrawatch.config import BatchSettings
from infrawatch.util.retry import Sleep

K = TypeVar("K", bound=Hashable)
R = TypeVar("R")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchOutcome(Generic[R]):
    """Result of one work item: a value, or the error that replaced it."""

    value: R | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BatchProgress:
    """Throughput-based progress snapshot. Observability only."""

    completed: int
    total: int
    elapsed: float

    @property
    def remaining(self) -> int:
        return self.total - self.completed

    @property
    def eta_seconds(self) -> float:
        if self.completed == 0:
            return 0.0
        return self.elapsed / self.completed * self.remaining


def format_eta(seconds: float) -> str:
    """Render an ETA as '3m 12s' or '45s'."""
    minutes, secs = divmod(round(seconds), 60)
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


class BatchOrchestrator(Generic[K, R]):
    """Runs a worker over work items in sequential, internally concurrent groups.

    Items are split into consecutive groups of ``settings.size``. Every
    item in a group runs concurrently and the next group starts only once
    the whole group has finished, optionally after ``settings.delay``
    seconds. A worker failure is recorded as a degraded outcome for that
    item alone; siblings and later groups are unaffected.
    """

    def __init__(
        self,
        settings: BatchSettings,
        *,
        label: str = "items",
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._label = label
        self._sleep = sleep
        self._clock = clock
        self.progress = BatchProgress(completed=0, total=0, elapsed=0.0)

    async def process(
        self,
        items: Iterable[K],
        worker: Callable[[K], Awaitable[R]],
        *,
        on_progress: Callable[[BatchProgress], None] | None = None,
        on_batch_complete: Callable[[Mapping[K, BatchOutcome[R]]], Awaitable[None]] | None = None,
    ) -> dict[K, BatchOutcome[R]]:
        """Process every item and return one outcome per distinct item.

        Args:
            items: Work items. Duplicates collapse to a single key.
            worker: Async callable producing the result for one item.
            on_progress: Called after each item completes.
            on_batch_complete: Awaited after each group with all outcomes so far.

        Returns:
            Mapping of item to its BatchOutcome.
        """
        unique = list(dict.fromkeys(items))
        size = self._settings.size
        groups = [unique[i : i + size] for i in range(0, len(unique), size)]
        outcomes: dict[K, BatchOutcome[R]] = {}

        started = self._clock()
        self.progress = BatchProgress(completed=0, total=len(unique), elapsed=0.0)

        async def run_one(item: K) -> None:
            try:
                outcome = BatchOutcome(value=await worker(item))
            except Exception as e:
                logger.warning(f"Failed to process {item} ({self._label}): {e}")
                outcome = BatchOutcome(error=str(e) or type(e).__name__)
            outcomes[item] = outcome

            self.progress = BatchProgress(
                completed=len(outcomes),
                total=len(unique),
                elapsed=self._clock() - started,
            )
            logger.debug(
                f"  {item}: done ({self.progress.completed}/{self.progress.total}) "
                f"| ETA: {format_eta(self.progress.eta_seconds)}"
            )
            if on_progress is not None:
                on_progress(self.progress)

        for index, group in enumerate(groups, start=1):
            logger.info(
                f"Processing {self._label} batch {index}/{len(groups)} "
                f"({len(group)} in parallel)"
            )
            await asyncio.gather(*(run_one(item) for item in group))

            if on_batch_complete is not None:
                await on_batch_complete(outcomes)

            if index < len(groups) and self._settings.delay > 0:
                await self._sleep(self._settings.delay)

        failed = sum(1 for outcome in outcomes.values() if not outcome.ok)
        logger.info(
            f"Processed {len(outcomes)} {self._label} in {len(groups)} batches "
            f"({failed} failed)"
        )
        return outcomes
