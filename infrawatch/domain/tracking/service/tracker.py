"""ChangeTracker - first-seen bookkeeping across inventory runs."""

import datetime as dt
import logging
from collections.abc import Callable
from email.utils import parsedate_to_datetime

import logfire

from infrawatch.config import StorageKeys, TrackingConfig
from infrawatch.domain.inventory.model.region import Region
from infrawatch.domain.inventory.model.service import ServicesDocument
from infrawatch.domain.inventory.model.snapshot import Snapshot
from infrawatch.domain.shared.document_store import DocumentStore
from infrawatch.domain.shared.service import Service
from infrawatch.domain.tracking.model.history import (
    ChangeHistory,
    ChangeLogEntry,
    ChangeSet,
    EntityRef,
    TrackedRegion,
    TrackedService,
)
from infrawatch.domain.tracking.model.report import ChangeReport
from infrawatch.domain.tracking.service.changelog import (
    baseline_summary,
    generate_summary,
    record_changes,
)
from infrawatch.domain.tracking.service.diff import diff_snapshots

logger = logging.getLogger(__name__)


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


def format_launch_date(value: str | None) -> dt.date | None:
    """Parse an RFC 822 feed date (or ISO date) into a calendar date."""
    if not value:
        return None
    try:
        return parsedate_to_datetime(value).date()
    except (TypeError, ValueError):
        pass
    try:
        return dt.datetime.fromisoformat(value).date()
    except ValueError:
        logger.debug(f"Unparseable launch date: {value!r}")
        return None


class ChangeTracker(Service):
    """Diffs each run's snapshot against the previous one and records what is new.

    Without a usable previous snapshot the current inventory is recorded as a
    baseline: entities get first_seen=today and are not flagged new on that run.
    Entities already in the history keep their first_seen date.

    With a previous snapshot, new regions, services and regional services are
    stamped with today's date and recorded in today's changelog entry,
    merging into it when an earlier run today already created one.

    The history and the previous snapshot are persisted on every call.
    """

    documents: DocumentStore
    config: TrackingConfig
    keys: StorageKeys
    clock: Callable[[], dt.datetime] = utcnow

    def today(self) -> dt.date:
        return self.clock().astimezone(dt.UTC).date()

    async def load_history(self) -> ChangeHistory | None:
        return await self.documents.load(self.keys.change_history, ChangeHistory)

    async def load_previous_snapshot(self) -> Snapshot | None:
        return await self.documents.load(self.keys.previous_snapshot, Snapshot)

    async def load_service_names(self) -> dict[str, str]:
        services = await self.documents.load(self.keys.services, ServicesDocument)
        if services is None:
            logger.warning("Could not load service names, using codes")
            return {}
        return services.names()

    async def detect_and_track(self, current: Snapshot) -> ChangeReport:
        with logfire.span("DetectAndTrackChanges"):
            today = self.today()
            names = await self.load_service_names()
            previous = await self.load_previous_snapshot()
            stored = await self.load_history()
            history = stored or ChangeHistory.empty(today)

            if previous is None:
                return await self._track_baseline(history, current, names, today)

            # Sections the previous run did not produce have nothing to diff against.
            # A lost history is rebuilt from the current run.
            seeded = self._seed_baseline(
                history,
                current,
                names,
                today,
                regions=stored is None or previous.regions is None,
                services=stored is None or previous.services is None,
                regional_services=stored is None or previous.services_by_region is None,
            )

            diff = diff_snapshots(current, previous, known=history.regional_services)
            if not diff.has_changes:
                logger.info("No changes detected since last run")
                await self._finish(history, current, today, seeded=seeded)
                return ChangeReport(has_changes=False, is_first_run=False)

            logger.info(
                f"New regions: {len(diff.new_regions)}, new services: {len(diff.new_services)}, "
                f"new regional services: {len(diff.new_regional_services)}"
            )

            for region in diff.new_regions:
                self._stamp_region(history, region, today)
                logger.info(f"  + region {region.code} ({region.name})")

            for code in diff.new_services:
                self._stamp_service(history, code, names.get(code, code), today)
                logger.info(f"  + service {code} ({names.get(code, code)})")

            for pair in diff.new_regional_services:
                history.regional_services.setdefault(pair.region, {}).setdefault(
                    pair.service, today
                )

            changes = ChangeSet(
                new_regions=[EntityRef(code=r.code, name=r.name) for r in diff.new_regions],
                new_services=[
                    EntityRef(code=code, name=names.get(code, code)) for code in diff.new_services
                ],
                new_regional_services=diff.new_regional_services,
            )
            entry = record_changes(history, today, changes)
            logger.info(f"Changelog entry for {entry.date}: {entry.summary}")

            await self._finish(history, current, today, seeded=seeded)

            return ChangeReport(
                has_changes=True,
                is_first_run=False,
                new_regions=diff.new_regions,
                new_services=diff.new_services,
                new_regional_services=diff.new_regional_services,
                summary=generate_summary(
                    changes.new_regions, changes.new_services, changes.new_regional_services
                ),
            )

    async def _track_baseline(
        self,
        history: ChangeHistory,
        current: Snapshot,
        names: dict[str, str],
        today: dt.date,
    ) -> ChangeReport:
        logger.info("No usable previous snapshot, recording baseline change history")
        seeded = self._seed_baseline(history, current, names, today)

        self._update_totals(history, current, today)
        if history.entry_for(today) is None:
            summary = baseline_summary(
                history.metadata.total_regions, history.metadata.total_services
            )
            history.change_log.insert(0, ChangeLogEntry(date=today, summary=summary))

        await self._finish(history, current, today, seeded=seeded)
        logger.info(
            f"Baseline: {history.metadata.total_regions} regions, "
            f"{history.metadata.total_services} services"
        )
        return ChangeReport(has_changes=False, is_first_run=True)

    def _seed_baseline(
        self,
        history: ChangeHistory,
        current: Snapshot,
        names: dict[str, str],
        today: dt.date,
        *,
        regions: bool = True,
        services: bool = True,
        regional_services: bool = True,
    ) -> list[TrackedRegion | TrackedService]:
        """Record current entities not yet in the history and return them."""
        seeded: list[TrackedRegion | TrackedService] = []
        if regions and current.regions is not None:
            for region in current.regions.regions:
                if region.code not in history.regions:
                    history.regions[region.code] = TrackedRegion(
                        name=region.name,
                        first_seen=today,
                        availability_zones=region.availability_zones,
                        launch_date=format_launch_date(region.launch_date),
                    )
                    seeded.append(history.regions[region.code])

        if services and current.services is not None:
            for code in current.services.services:
                if code not in history.services:
                    history.services[code] = TrackedService(
                        name=names.get(code, code), first_seen=today
                    )
                    seeded.append(history.services[code])

        if regional_services and current.services_by_region is not None:
            for region, record in current.services_by_region.by_region.items():
                if record.is_degraded:
                    continue
                row = history.regional_services.setdefault(region, {})
                for service in record.services:
                    row.setdefault(service, today)
        return seeded

    def _stamp_region(self, history: ChangeHistory, region: Region, today: dt.date) -> None:
        existing = history.regions.get(region.code)
        history.regions[region.code] = TrackedRegion(
            name=region.name,
            first_seen=existing.first_seen if existing else today,
            availability_zones=region.availability_zones,
            launch_date=format_launch_date(region.launch_date),
            is_new=True,
        )

    def _stamp_service(self, history: ChangeHistory, code: str, name: str, today: dt.date) -> None:
        existing = history.services.get(code)
        history.services[code] = TrackedService(
            name=name,
            first_seen=existing.first_seen if existing else today,
            is_new=True,
        )

    def _update_totals(self, history: ChangeHistory, current: Snapshot, today: dt.date) -> None:
        metadata = history.metadata
        metadata.last_updated = today
        if current.regions is not None:
            metadata.total_regions = current.regions.count
        if current.services is not None:
            metadata.total_services = current.services.count
        metadata.total_regional_services = history.total_regional_services()

        counts = metadata.changes_since_inception
        counts.new_regions = len(history.regions)
        counts.new_services = len(history.services)
        counts.new_regional_services = metadata.total_regional_services

    def refresh_is_new(self, history: ChangeHistory, today: dt.date) -> None:
        """Recompute is_new: first seen within the last recency_days days, inclusive."""
        window = self.config.recency_days
        for entity in [*history.regions.values(), *history.services.values()]:
            entity.is_new = (today - entity.first_seen).days <= window

    async def _finish(
        self,
        history: ChangeHistory,
        current: Snapshot,
        today: dt.date,
        *,
        seeded: list[TrackedRegion | TrackedService],
    ) -> None:
        self._update_totals(history, current, today)
        self.refresh_is_new(history, today)
        # Entities seeded by this run form the baseline
        for entity in seeded:
            entity.is_new = False
        location = await self.documents.save(self.keys.change_history, history)
        await self.documents.save(self.keys.previous_snapshot, current)
        logger.info(f"Change history updated: {location}")
