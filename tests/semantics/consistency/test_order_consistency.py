"""
Semantic test: order consistency audit.

Invariant:
A delivered order must carry its completion and shipped dates (errors). An
order in production or later without confirmed_at is suspicious (warning).
Every aggregate audit publishes a summary event.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from hbm_status.core.audit.consistency import ConsistencyChecker
from hbm_status.core.config.status_config import StatusConfig
from hbm_status.core.domain.types import InquirySnapshot, OrderSnapshot
from hbm_status.core.events.event_bus import EventBus
from hbm_status.core.events.events import ConsistencyAuditEvent
from hbm_status.core.events.sinks.null_event_bus import CollectingSink
from hbm_status.core.status.order_status import OrderStatusEngine

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
T0 = NOW - timedelta(days=20)


def _checker(**kwargs) -> ConsistencyChecker:
    return ConsistencyChecker(OrderStatusEngine(clock=lambda: NOW), clock=lambda: NOW, **kwargs)


def test_delivered_order_without_milestones() -> None:
    order = OrderSnapshot(
        id="o-1", order_number="ORD-0001", created_at=T0, delivered_at=T0 + timedelta(days=9)
    )

    result = _checker().check_orders([order])

    assert result.is_valid is False
    assert result.errors == (
        "Order ORD-0001 is delivered but missing completion date",
        "Order ORD-0001 is delivered but missing shipped date",
    )
    assert result.warnings == ("Order ORD-0001 is in delivered but was never confirmed",)


def test_production_without_confirmation_warns() -> None:
    order = OrderSnapshot(
        id="o-2", order_number="ORD-0002", created_at=T0, production_stage_id="stage-1"
    )

    result = _checker().check_orders([order])

    assert result.is_valid is True
    assert result.warnings == ("Order ORD-0002 is in production but was never confirmed",)


def test_clean_orders_pass() -> None:
    order = OrderSnapshot(
        id="o-3",
        order_number="ORD-0003",
        created_at=T0,
        confirmed_at=T0 + timedelta(days=1),
        production_started_at=T0 + timedelta(days=2),
    )

    result = _checker().check_orders([order])

    assert result.is_valid is True
    assert result.warnings == ()


def test_aggregate_check_emits_summary_event() -> None:
    sink = CollectingSink()
    checker = _checker(event_bus=EventBus([sink]))

    result = checker.check(
        orders=[OrderSnapshot(id="o-1", order_number="ORD-0001", created_at=T0, delivered_at=T0)],
        inquiries=[InquirySnapshot(id="i-1", status=1, created_at=NOW - timedelta(days=10))],
    )

    assert len(result.errors) == 2
    assert len(result.warnings) == 2
    assert sink.events == [
        ConsistencyAuditEvent(
            observed_at=NOW,
            orders_checked=1,
            inquiries_checked=1,
            error_count=2,
            warning_count=2,
        )
    ]


def test_events_can_be_disabled() -> None:
    sink = CollectingSink()
    checker = _checker(config=StatusConfig(emit_events=False), event_bus=EventBus([sink]))

    checker.check()

    assert sink.events == []
