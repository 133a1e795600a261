"""
Semantic test: order transition table and snapshot validation.

Invariant:
canceled is the only terminal order status; delivered may still be canceled.
Priorities form a strict total order with canceled highest. Malformed
snapshots are reported as error strings, never raised.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from hbm_status.core.domain.statuses import ORDER_ALLOWED_TRANSITIONS, OrderStatus
from hbm_status.core.domain.types import OrderSnapshot, QuotationRef
from hbm_status.core.status.order_status import OrderStatusEngine

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def test_terminal_closure() -> None:
    assert OrderStatusEngine.next_statuses(OrderStatus.CANCELED) == ()
    assert OrderStatusEngine.is_terminal(OrderStatus.CANCELED) is True
    assert OrderStatusEngine.is_terminal(OrderStatus.DELIVERED) is False
    assert OrderStatusEngine.next_statuses(OrderStatus.DELIVERED) == (OrderStatus.CANCELED,)


def test_every_status_has_a_table_entry() -> None:
    assert set(ORDER_ALLOWED_TRANSITIONS) == set(OrderStatus)


def test_is_valid_transition_follows_table() -> None:
    assert OrderStatusEngine.is_valid_transition(OrderStatus.REQUESTED, OrderStatus.QUOTED)
    assert OrderStatusEngine.is_valid_transition(OrderStatus.QUOTED, OrderStatus.EXPIRED)
    assert OrderStatusEngine.is_valid_transition(OrderStatus.DELIVERED, OrderStatus.CANCELED)
    assert not OrderStatusEngine.is_valid_transition(OrderStatus.REQUESTED, OrderStatus.SHIPPED)
    assert not OrderStatusEngine.is_valid_transition(OrderStatus.CANCELED, OrderStatus.REQUESTED)


def test_priority_is_strict_total_order() -> None:
    priorities = [OrderStatusEngine.priority(status) for status in OrderStatus]

    assert len(set(priorities)) == len(priorities)
    assert max(OrderStatus, key=OrderStatusEngine.priority) == OrderStatus.CANCELED
    assert min(OrderStatus, key=OrderStatusEngine.priority) == OrderStatus.REQUESTED


def test_higher_priority_picks_winner() -> None:
    assert (
        OrderStatusEngine.higher_priority(OrderStatus.SHIPPED, OrderStatus.CANCELED)
        == OrderStatus.CANCELED
    )
    assert (
        OrderStatusEngine.higher_priority(OrderStatus.QUOTED, OrderStatus.QUOTED)
        == OrderStatus.QUOTED
    )


def test_validate_snapshot_reports_missing_identity() -> None:
    errors = OrderStatusEngine.validate_snapshot(OrderSnapshot())

    assert "Order id is required" in errors
    assert "Order order_number is required" in errors
    assert "Order creation date is required" in errors


def test_validate_snapshot_reports_date_ordering() -> None:
    snapshot = OrderSnapshot(
        id="order-1",
        order_number="ORD-0001",
        created_at=T0,
        quoted_at=T0 + timedelta(days=5),
        confirmed_at=T0 + timedelta(days=4),
        production_started_at=T0 + timedelta(days=10),
        completed_at=T0 + timedelta(days=9),
        shipped_at=T0 + timedelta(days=8),
        delivered_at=T0 + timedelta(days=7),
    )

    errors = OrderStatusEngine.validate_snapshot(snapshot)

    assert "confirmed_at must be after quoted_at" in errors
    assert "Completion date cannot be before production start date" in errors
    assert "Shipped date cannot be before completion date" in errors
    assert "Delivered date cannot be before shipped date" in errors


def test_validate_snapshot_reports_incomplete_quotations() -> None:
    snapshot = OrderSnapshot(
        id="order-1",
        order_number="ORD-0001",
        created_at=T0,
        quotations=(QuotationRef(is_active=True),),
    )

    errors = OrderStatusEngine.validate_snapshot(snapshot)

    assert errors == ["Quotation 1 is missing ID", "Quotation 1 is missing valid until date"]


def test_valid_snapshot_has_no_errors() -> None:
    snapshot = OrderSnapshot(
        id="order-1",
        order_number="ORD-0001",
        created_at=T0,
        quoted_at=T0 + timedelta(days=1),
        confirmed_at=T0 + timedelta(days=2),
    )

    assert OrderStatusEngine.validate_snapshot(snapshot) == []


def test_result_serializes_labels() -> None:
    engine = OrderStatusEngine(clock=lambda: T0)
    snapshot = OrderSnapshot(id="order-1", order_number="ORD-0001", created_at=T0, shipped_at=T0)

    payload = engine.compute_status(snapshot).to_dict()

    assert payload["status"] == "shipped"
    assert payload["can_transition_to"] == ["delivered", "canceled"]
    assert payload["computed_at"] == T0.isoformat()
