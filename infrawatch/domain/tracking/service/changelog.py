"""Day-keyed changelog updates.

A changelog holds at most one entry per date. record_changes picks one of
two branches: merge into today's entry when it exists, otherwise create a
new entry at the front of the log.
"""

import datetime as dt
from collections.abc import Callable, Hashable, Sequence
from typing import TypeVar

from infrawatch.domain.tracking.model.history import (
    ChangeHistory,
    ChangeLogEntry,
    ChangeSet,
    EntityRef,
    RegionalService,
)

T = TypeVar("T")


def generate_summary(
    new_regions: Sequence[EntityRef],
    new_services: Sequence[EntityRef],
    new_regional_services: Sequence[RegionalService],
) -> str:
    parts = []
    if len(new_regions) == 1:
        parts.append(f"Added 1 new region ({new_regions[0].code})")
    elif new_regions:
        parts.append(f"Added {len(new_regions)} new regions")

    if len(new_services) == 1:
        parts.append("1 new service")
    elif new_services:
        parts.append(f"{len(new_services)} new services")

    if new_regional_services:
        parts.append(f"{len(new_regional_services)} new regional service mappings")

    return ", ".join(parts)


def baseline_summary(total_regions: int, total_services: int) -> str:
    return f"Baseline initialized with {total_regions} regions, {total_services} services"


def _append_unique(
    existing: list[T], additions: Sequence[T], key: Callable[[T], Hashable]
) -> list[T]:
    seen = {key(item) for item in existing}
    merged = list(existing)
    for item in additions:
        if key(item) not in seen:
            seen.add(key(item))
            merged.append(item)
    return merged


def create_entry(day: dt.date, changes: ChangeSet) -> ChangeLogEntry:
    return ChangeLogEntry(
        date=day,
        changes=changes,
        summary=generate_summary(
            changes.new_regions, changes.new_services, changes.new_regional_services
        ),
    )


def merge_into_entry(entry: ChangeLogEntry, changes: ChangeSet) -> ChangeLogEntry:
    """Append changes to an existing entry, skipping items it already lists."""
    merged = ChangeSet(
        new_regions=_append_unique(
            entry.changes.new_regions, changes.new_regions, lambda ref: ref.code
        ),
        new_services=_append_unique(
            entry.changes.new_services, changes.new_services, lambda ref: ref.code
        ),
        new_regional_services=_append_unique(
            entry.changes.new_regional_services,
            changes.new_regional_services,
            lambda pair: (pair.region, pair.service),
        ),
    )
    entry.changes = merged
    entry.summary = generate_summary(
        merged.new_regions, merged.new_services, merged.new_regional_services
    )
    return entry


def record_changes(history: ChangeHistory, day: dt.date, changes: ChangeSet) -> ChangeLogEntry:
    entry = history.entry_for(day)
    if entry is not None:
        return merge_into_entry(entry, changes)

    entry = create_entry(day, changes)
    history.change_log.insert(0, entry)
    return entry
