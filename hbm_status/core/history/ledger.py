"""Append-only status history ledger.

The ledger is the only stateful component of the status subsystem. It is an
explicit object with an injected store, instantiated once per process and
passed by reference to the services that record status changes.

All appends and reads are serialised by one re-entrant lock. Each append is
logged and published while the lock is held, so sinks observe events in ledger
order and may read the ledger back from inside ``on_event``.
"""

# pylint: disable=too-many-arguments
from __future__ import annotations

import logging
import threading
from collections import defaultdict
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Callable, Mapping
from uuid import uuid4

from hbm_status.core.domain.clock import Clock, utc_now
from hbm_status.core.domain.statuses import InquiryStatus, OrderStatus, status_label
from hbm_status.core.domain.types import EntityType
from hbm_status.core.events.events import StatusChangedEvent
from hbm_status.core.events.sinks.null_event_bus import NullEventBus
from hbm_status.core.history.records import DateRange, StatusChangeRecord, TimelineEntry
from hbm_status.core.history.storage import InMemoryLedgerStorage, LedgerStorage

if TYPE_CHECKING:
    from hbm_status.core.events.event_bus import EventBus

LOGGER = logging.getLogger(__name__)

StatusValue = OrderStatus | InquiryStatus | str


def _default_record_id(entity_type: str, entity_id: str) -> str:
    return f"{entity_type}_{entity_id}_{uuid4().hex}"


def _by_time(records: list[StatusChangeRecord]) -> list[StatusChangeRecord]:
    # Stable: records sharing a timestamp keep append order.
    return sorted(records, key=lambda r: r.changed_at)


class StatusHistoryLedger:
    """Append-only log of status changes with timeline and statistics queries."""

    def __init__(
        self,
        storage: LedgerStorage | None = None,
        event_bus: EventBus | None = None,
        clock: Clock = utc_now,
        id_factory: Callable[[str, str], str] = _default_record_id,
    ) -> None:
        self._storage = storage if storage is not None else InMemoryLedgerStorage()
        self._event_bus = event_bus if event_bus is not None else NullEventBus()
        self._clock = clock
        self._id_factory = id_factory
        self._lock = threading.RLock()
        self._records: list[StatusChangeRecord] = list(self._storage.load())

    # ---- Append ----

    def record(
        self,
        entity_type: EntityType,
        entity_id: str,
        from_status: StatusValue | None,
        to_status: StatusValue,
        changed_by: str | None = None,
        reason: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> StatusChangeRecord:
        """Append a status change and return the stored record."""
        with self._lock:
            record = StatusChangeRecord(
                id=self._id_factory(entity_type, entity_id),
                entity_type=entity_type,
                entity_id=entity_id,
                from_status=status_label(from_status) if from_status is not None else None,
                to_status=status_label(to_status),
                changed_at=self._clock(),
                changed_by=changed_by,
                reason=reason,
                metadata=metadata,
            )
            self._storage.append(record)
            self._records.append(record)

            LOGGER.debug(
                "Status change recorded",
                extra={
                    "record_id": record.id,
                    "entity_type": entity_type,
                    "entity_id": entity_id,
                    "from_status": record.from_status,
                    "to_status": record.to_status,
                },
            )
            self._event_bus.emit(
                StatusChangedEvent(
                    record_id=record.id,
                    entity_type=record.entity_type,
                    entity_id=record.entity_id,
                    from_status=record.from_status,
                    to_status=record.to_status,
                    changed_at=record.changed_at,
                    changed_by=record.changed_by,
                )
            )
        return record

    @property
    def storage(self) -> LedgerStorage:
        return self._storage

    # ---- Reads ----

    def _snapshot(self) -> list[StatusChangeRecord]:
        with self._lock:
            return list(self._records)

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def history_for(self, entity_type: EntityType, entity_id: str) -> list[StatusChangeRecord]:
        """All records of one entity, ascending by time."""
        return _by_time(
            [
                r
                for r in self._snapshot()
                if r.entity_type == entity_type and r.entity_id == entity_id
            ]
        )

    def latest(self, entity_type: EntityType, entity_id: str) -> StatusChangeRecord | None:
        history = self.history_for(entity_type, entity_id)
        return history[-1] if history else None

    def first(self, entity_type: EntityType, entity_id: str) -> StatusChangeRecord | None:
        history = self.history_for(entity_type, entity_id)
        return history[0] if history else None

    def query(
        self,
        *,
        entity_type: EntityType | None = None,
        entity_id: str | None = None,
        date_range: DateRange | None = None,
        changed_by: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> list[StatusChangeRecord]:
        """Filter, sort newest first, then paginate (pages start at 1)."""
        matched = [
            r
            for r in self._snapshot()
            if (entity_type is None or r.entity_type == entity_type)
            and (entity_id is None or r.entity_id == entity_id)
            and (date_range is None or date_range.contains(r.changed_at))
            and (changed_by is None or r.changed_by == changed_by)
        ]
        matched.sort(key=lambda r: r.changed_at, reverse=True)

        if limit is not None:
            start = (max(page or 1, 1) - 1) * limit
            matched = matched[start : start + limit]

        return matched

    def timeline(self, entity_type: EntityType, entity_id: str) -> list[TimelineEntry]:
        """Per-entry durations; the last entry runs until now and is active."""
        history = self.history_for(entity_type, entity_id)
        now = self._clock()
        entries: list[TimelineEntry] = []
        for index, record in enumerate(history):
            is_last = index == len(history) - 1
            until = now if is_last else history[index + 1].changed_at
            entries.append(
                TimelineEntry(
                    status=record.to_status,
                    changed_at=record.changed_at,
                    duration=until - record.changed_at,
                    is_active=is_last,
                    changed_by=record.changed_by,
                    reason=record.reason,
                    metadata=record.metadata,
                )
            )
        return entries

    # ---- Statistics ----

    def _histories(self, entity_type: EntityType) -> dict[str, list[StatusChangeRecord]]:
        grouped: dict[str, list[StatusChangeRecord]] = defaultdict(list)
        for record in self._snapshot():
            if record.entity_type == entity_type:
                grouped[record.entity_id].append(record)
        return {entity_id: _by_time(records) for entity_id, records in grouped.items()}

    def average_duration(
        self,
        entity_type: EntityType,
        status: StatusValue,
        date_range: DateRange | None = None,
    ) -> timedelta:
        """Mean time spent in ``status``.

        Only visits that have a successor in the same entity's history count;
        the entity's current, still-open visit is excluded. Returns zero when
        there is nothing to average.
        """
        label = status_label(status)
        durations: list[timedelta] = []
        for history in self._histories(entity_type).values():
            for current, successor in zip(history, history[1:]):
                if current.to_status != label:
                    continue
                if date_range is not None and not date_range.contains(current.changed_at):
                    continue
                durations.append(successor.changed_at - current.changed_at)

        if not durations:
            return timedelta(0)
        return sum(durations, timedelta(0)) / len(durations)

    def find_stale_in_status(
        self,
        entity_type: EntityType,
        status: StatusValue,
        max_duration: timedelta,
    ) -> list[str]:
        """Entity ids whose current status is ``status`` for longer than allowed.

        Only the latest record of each entity is considered; earlier visits
        to the same status are ignored.
        """
        label = status_label(status)
        now = self._clock()
        latest: dict[str, StatusChangeRecord] = {}
        for record in self._snapshot():
            if record.entity_type != entity_type:
                continue
            existing = latest.get(record.entity_id)
            if existing is None or record.changed_at >= existing.changed_at:
                latest[record.entity_id] = record

        return [
            entity_id
            for entity_id, record in latest.items()
            if record.to_status == label and now - record.changed_at > max_duration
        ]

    def change_statistics(
        self,
        start: datetime,
        end: datetime,
        entity_type: EntityType | None = None,
    ) -> dict[str, int]:
        """Count ``"from → to"`` transitions inside ``[start, end]``."""
        window = DateRange(start=start, end=end)
        stats: dict[str, int] = {}
        for record in self._snapshot():
            if entity_type is not None and record.entity_type != entity_type:
                continue
            if not window.contains(record.changed_at):
                continue
            key = f"{record.from_status or 'initial'} → {record.to_status}"
            stats[key] = stats.get(key, 0) + 1
        return stats

    def unique_statuses(self, entity_type: EntityType) -> list[str]:
        seen: set[str] = set()
        for record in self._snapshot():
            if record.entity_type != entity_type:
                continue
            seen.add(record.to_status)
            if record.from_status:
                seen.add(record.from_status)
        return sorted(seen)

