"""
Semantic test: the status ledger is an append-only, time-ordered log.

Invariant:
Per-entity history is ascending by changed_at and latest() returns the
last record appended. Queries are newest first. Timeline durations chain
consecutive records and only the last entry is active.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

from hbm_status.core.domain.statuses import InquiryStatus, OrderStatus
from hbm_status.core.events.event_bus import EventBus
from hbm_status.core.events.events import StatusChangedEvent
from hbm_status.core.events.sinks.null_event_bus import CollectingSink
from hbm_status.core.history.ledger import StatusHistoryLedger
from hbm_status.core.history.records import DateRange

T0 = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def _ledger_with_order_history() -> tuple[StatusHistoryLedger, FakeClock]:
    clock = FakeClock(T0)
    ledger = StatusHistoryLedger(clock=clock)
    ledger.record("order", "o-1", None, OrderStatus.REQUESTED, changed_by="web")
    clock.advance(hours=2)
    ledger.record("order", "o-1", OrderStatus.REQUESTED, OrderStatus.QUOTED, changed_by="sales")
    clock.advance(hours=5)
    ledger.record("order", "o-1", OrderStatus.QUOTED, OrderStatus.CONFIRMED, changed_by="client")
    return ledger, clock


def test_history_is_ascending_and_latest_is_last() -> None:
    ledger, _ = _ledger_with_order_history()

    history = ledger.history_for("order", "o-1")

    assert [r.to_status for r in history] == ["requested", "quoted", "confirmed"]
    assert ledger.latest("order", "o-1") == history[-1]
    assert ledger.first("order", "o-1") == history[0]
    assert history[0].from_status is None


def test_unknown_entity_has_no_history() -> None:
    ledger, _ = _ledger_with_order_history()

    assert ledger.history_for("order", "o-404") == []
    assert ledger.latest("order", "o-404") is None
    assert ledger.latest("inquiry", "o-1") is None


def test_inquiry_statuses_are_stored_as_labels() -> None:
    ledger = StatusHistoryLedger(clock=lambda: T0)

    record = ledger.record("inquiry", "i-1", InquiryStatus.NEW, InquiryStatus.ACCEPTED)

    assert (record.from_status, record.to_status) == ("new", "accepted")


def test_query_is_newest_first_and_paginates() -> None:
    ledger, _ = _ledger_with_order_history()

    everything = ledger.query(entity_type="order")
    assert [r.to_status for r in everything] == ["confirmed", "quoted", "requested"]

    assert [r.to_status for r in ledger.query(limit=2)] == ["confirmed", "quoted"]
    assert [r.to_status for r in ledger.query(page=2, limit=2)] == ["requested"]
    assert [r.changed_by for r in ledger.query(changed_by="sales")] == ["sales"]

    window = DateRange(start=T0 + timedelta(hours=1), end=T0 + timedelta(hours=3))
    assert [r.to_status for r in ledger.query(date_range=window)] == ["quoted"]


def test_timeline_durations_and_active_entry() -> None:
    ledger, clock = _ledger_with_order_history()
    clock.advance(hours=1)

    timeline = ledger.timeline("order", "o-1")

    assert [e.duration for e in timeline] == [
        timedelta(hours=2),
        timedelta(hours=5),
        timedelta(hours=1),
    ]
    assert [e.is_active for e in timeline] == [False, False, True]


def test_average_duration_ignores_open_visits() -> None:
    clock = FakeClock(T0)
    ledger = StatusHistoryLedger(clock=clock)
    ledger.record("order", "o-1", None, "quoted")
    ledger.record("order", "o-2", None, "quoted")
    clock.advance(hours=4)
    ledger.record("order", "o-1", "quoted", "confirmed")
    clock.advance(hours=2)
    ledger.record("order", "o-2", "quoted", "confirmed")

    assert ledger.average_duration("order", OrderStatus.QUOTED) == timedelta(hours=5)
    assert ledger.average_duration("order", OrderStatus.CONFIRMED) == timedelta(0)


def test_find_stale_uses_current_status_only() -> None:
    clock = FakeClock(T0)
    ledger = StatusHistoryLedger(clock=clock)
    ledger.record("order", "o-1", None, "quoted")
    ledger.record("order", "o-2", None, "quoted")
    clock.advance(days=1)
    ledger.record("order", "o-2", "quoted", "confirmed")
    clock.advance(days=9)

    stale = ledger.find_stale_in_status("order", OrderStatus.QUOTED, timedelta(days=7))

    assert stale == ["o-1"]


def test_change_statistics_and_unique_statuses() -> None:
    ledger, _ = _ledger_with_order_history()

    stats = ledger.change_statistics(T0, T0 + timedelta(days=1), entity_type="order")

    assert stats == {
        "initial → requested": 1,
        "requested → quoted": 1,
        "quoted → confirmed": 1,
    }
    assert ledger.unique_statuses("order") == ["confirmed", "quoted", "requested"]


def test_every_record_is_published() -> None:
    sink = CollectingSink()
    ledger = StatusHistoryLedger(event_bus=EventBus([sink]), clock=lambda: T0)

    record = ledger.record("order", "o-1", None, "requested", changed_by="web", reason="created")

    assert len(sink.events) == 1
    event = sink.events[0]
    assert isinstance(event, StatusChangedEvent)
    assert event.record_id == record.id
    assert (event.to_status, event.changed_at) == ("requested", T0)


def test_concurrent_appends_are_not_lost() -> None:
    ledger = StatusHistoryLedger(clock=lambda: T0)

    def worker(index: int) -> None:
        for n in range(50):
            ledger.record("order", f"o-{index}", None, "requested", metadata={"n": n})

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert ledger.count() == 400
    assert len({r.id for r in ledger.query()}) == 400
    assert len(ledger.history_for("order", "o-3")) == 50
