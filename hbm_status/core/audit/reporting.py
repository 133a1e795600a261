"""Dashboard-style aggregates over snapshot batches."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Sequence

from hbm_status.core.audit.consistency import ConsistencyChecker
from hbm_status.core.domain.results import StatusStatistics
from hbm_status.core.domain.statuses import InquiryStatus, OrderStatus
from hbm_status.core.domain.types import InquirySnapshot, OrderSnapshot
from hbm_status.core.status.inquiry_status import InquiryStatusEngine
from hbm_status.core.status.order_status import OrderStatusEngine


@dataclass(slots=True)
class ActionableOrders:
    needs_quotation: list[OrderSnapshot] = field(default_factory=list)
    needs_confirmation: list[OrderSnapshot] = field(default_factory=list)
    expired_quotations: list[OrderSnapshot] = field(default_factory=list)
    ready_for_production: list[OrderSnapshot] = field(default_factory=list)
    in_production: list[OrderSnapshot] = field(default_factory=list)
    ready_to_ship: list[OrderSnapshot] = field(default_factory=list)


@dataclass(slots=True)
class ActionableInquiries:
    needs_review: list[InquirySnapshot] = field(default_factory=list)
    in_progress: list[InquirySnapshot] = field(default_factory=list)
    stale: list[InquirySnapshot] = field(default_factory=list)


_ORDER_BUCKETS: dict[OrderStatus, str] = {
    OrderStatus.REQUESTED: "needs_quotation",
    OrderStatus.QUOTED: "needs_confirmation",
    OrderStatus.EXPIRED: "expired_quotations",
    OrderStatus.CONFIRMED: "ready_for_production",
    OrderStatus.PRODUCTION: "in_production",
    OrderStatus.COMPLETED: "ready_to_ship",
}


def order_statistics(
    orders: Sequence[OrderSnapshot], engine: OrderStatusEngine
) -> StatusStatistics:
    counts = {status.value: 0 for status in OrderStatus}
    for order in orders:
        counts[engine.compute_status(order).status.value] += 1
    return StatusStatistics(
        entity_type="order",
        status_counts=counts,
        total_count=len(orders),
        computed_at=engine.clock(),
    )


def inquiry_statistics(
    inquiries: Sequence[InquirySnapshot], engine: InquiryStatusEngine
) -> StatusStatistics:
    """Counts by computed status, so invalid codes count as ``new``."""
    counts = {status.label: 0 for status in InquiryStatus}
    for inquiry in inquiries:
        counts[engine.compute_status(inquiry).label] += 1
    return StatusStatistics(
        entity_type="inquiry",
        status_counts=counts,
        total_count=len(inquiries),
        computed_at=engine.clock(),
    )


def status_distribution(statistics: StatusStatistics) -> dict[str, dict[str, float]]:
    """Count and percentage (2 decimals) per status."""
    distribution: dict[str, dict[str, float]] = {}
    for status, count in statistics.status_counts.items():
        percentage = (count / statistics.total_count * 100) if statistics.total_count else 0.0
        distribution[status] = {"count": count, "percentage": round(percentage, 2)}
    return distribution


def actionable_orders(
    orders: Iterable[OrderSnapshot], engine: OrderStatusEngine
) -> ActionableOrders:
    buckets = ActionableOrders()
    for order in orders:
        bucket = _ORDER_BUCKETS.get(engine.compute_status(order).status)
        if bucket is not None:
            getattr(buckets, bucket).append(order)
    return buckets


def actionable_inquiries(
    inquiries: Sequence[InquirySnapshot],
    checker: ConsistencyChecker,
    now: datetime | None = None,
) -> ActionableInquiries:
    """Split open inquiries into review / in-progress / stale buckets.

    Staleness uses the same thresholds as the consistency audit.
    """
    stale_ids = {id(entry.inquiry) for entry in checker.stale_inquiries(inquiries, now)}
    buckets = ActionableInquiries()
    for inquiry in inquiries:
        if id(inquiry) in stale_ids:
            buckets.stale.append(inquiry)
        elif inquiry.status == InquiryStatus.NEW:
            buckets.needs_review.append(inquiry)
        elif inquiry.status == InquiryStatus.IN_PROGRESS:
            buckets.in_progress.append(inquiry)
    return buckets


def sort_orders_by_priority(
    orders: Iterable[OrderSnapshot], engine: OrderStatusEngine
) -> list[OrderSnapshot]:
    """Return a new list, highest status priority first."""
    return sorted(
        orders,
        key=lambda order: engine.priority(engine.compute_status(order).status),
        reverse=True,
    )
