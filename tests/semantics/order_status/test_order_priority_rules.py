"""
Semantic test: order status is derived by first-match priority.

Invariant:
Rules are evaluated in fixed descending priority. canceled_at dominates every
other field; production is reached by either production field alone; an
order with no lifecycle fields is requested.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from hbm_status.core.domain.statuses import OrderStatus
from hbm_status.core.domain.types import OrderSnapshot, QuotationRef
from hbm_status.core.status.order_status import OrderStatusEngine

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
T0 = NOW - timedelta(days=30)


def _engine() -> OrderStatusEngine:
    return OrderStatusEngine(clock=lambda: NOW)


def _order(**fields) -> OrderSnapshot:
    return OrderSnapshot(id="order-1", order_number="ORD-0001", created_at=T0, **fields)


def test_canceled_dominates_delivered() -> None:
    result = _engine().compute_status(
        _order(
            shipped_at=T0 + timedelta(days=5),
            delivered_at=T0 + timedelta(days=6),
            canceled_at=T0 + timedelta(days=7),
        )
    )

    assert result.status == OrderStatus.CANCELED
    assert result.is_terminal is True
    assert result.can_transition_to == ()
    assert result.factors[0] == "canceled_at is set"


def test_canceled_wins_over_every_field_combination() -> None:
    everything = _order(
        quoted_at=T0 + timedelta(days=1),
        confirmed_at=T0 + timedelta(days=2),
        production_started_at=T0 + timedelta(days=3),
        production_stage_id="stage-7",
        completed_at=T0 + timedelta(days=4),
        shipped_at=T0 + timedelta(days=5),
        delivered_at=T0 + timedelta(days=6),
        canceled_at=T0 + timedelta(days=1),
        quotations=(QuotationRef(id="q-1", valid_until=NOW - timedelta(days=1), is_active=True),),
    )

    assert _engine().compute_status(everything).status == OrderStatus.CANCELED


def test_order_lifecycle_reaches_completed() -> None:
    result = _engine().compute_status(
        _order(
            quoted_at=T0 + timedelta(days=1),
            confirmed_at=T0 + timedelta(days=2),
            production_started_at=T0 + timedelta(days=3),
            completed_at=T0 + timedelta(days=4),
        )
    )

    assert result.status == OrderStatus.COMPLETED
    assert "completed_at is set" in result.factors
    assert result.is_terminal is False
    assert result.can_transition_to == (OrderStatus.SHIPPED, OrderStatus.CANCELED)


def test_production_stage_alone_is_sufficient() -> None:
    result = _engine().compute_status(_order(production_stage_id="stage-2"))

    assert result.status == OrderStatus.PRODUCTION
    assert "production_stage_id is set" in result.factors
    assert "production_started_at is set" not in result.factors


def test_production_records_both_fields_when_present() -> None:
    result = _engine().compute_status(
        _order(production_started_at=T0 + timedelta(days=1), production_stage_id="stage-2")
    )

    assert result.status == OrderStatus.PRODUCTION
    assert "production_started_at is set" in result.factors
    assert "production_stage_id is set" in result.factors


def test_quoted_at_without_quotations_is_quoted() -> None:
    result = _engine().compute_status(_order(quoted_at=T0 + timedelta(days=1)))

    assert result.status == OrderStatus.QUOTED
    assert "quoted_at is set" in result.factors


def test_inactive_quotations_are_ignored() -> None:
    stale = QuotationRef(id="q-1", valid_until=NOW - timedelta(days=3), is_active=False)

    result = _engine().compute_status(_order(quotations=(stale,)))

    assert result.status == OrderStatus.REQUESTED
    assert "default status" in result.factors


def test_computation_is_deterministic() -> None:
    engine = _engine()
    snapshot = _order(confirmed_at=T0 + timedelta(days=2))

    first = engine.compute_status(snapshot)
    second = engine.compute_status(snapshot)

    assert first.status == second.status == OrderStatus.CONFIRMED
    assert first.factors == second.factors


def test_group_and_filter_by_status() -> None:
    engine = _engine()
    requested = _order()
    confirmed = _order(confirmed_at=T0 + timedelta(days=1))
    canceled = _order(canceled_at=T0 + timedelta(days=1))

    grouped = engine.group_by_status([requested, confirmed, canceled])

    assert grouped[OrderStatus.REQUESTED] == [requested]
    assert grouped[OrderStatus.CONFIRMED] == [confirmed]
    assert engine.filter_by_status([requested, canceled], OrderStatus.CANCELED) == [canceled]
