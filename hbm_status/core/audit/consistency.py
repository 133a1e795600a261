"""Batch consistency audit over order and inquiry snapshots.

This is a reporting tool, not a gate: it flags stale or internally
inconsistent entities across a collection. ``is_valid`` is False only when a
hard data-integrity error was found; warnings never invalidate the report.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Iterable, Sequence

from hbm_status.core.config.status_config import StatusConfig
from hbm_status.core.domain.clock import Clock, utc_now
from hbm_status.core.domain.results import ValidationResult
from hbm_status.core.domain.statuses import InquiryStatus, OrderStatus
from hbm_status.core.domain.types import InquirySnapshot, OrderSnapshot
from hbm_status.core.events.events import ConsistencyAuditEvent
from hbm_status.core.events.sinks.null_event_bus import NullEventBus
from hbm_status.core.status.order_status import OrderStatusEngine

if TYPE_CHECKING:
    from hbm_status.core.events.event_bus import EventBus

# Statuses at or past production; these imply the order was confirmed.
_POST_CONFIRMATION: frozenset[OrderStatus] = frozenset(
    {
        OrderStatus.PRODUCTION,
        OrderStatus.COMPLETED,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
    }
)


@dataclass(frozen=True, slots=True)
class StaleInquiry:
    inquiry: InquirySnapshot
    status: InquiryStatus
    age_days: int


class ConsistencyChecker:
    """Flags stale or inconsistent entities across a batch of snapshots."""

    def __init__(
        self,
        order_engine: OrderStatusEngine | None = None,
        config: StatusConfig | None = None,
        clock: Clock = utc_now,
        event_bus: EventBus | None = None,
    ) -> None:
        self._orders = order_engine if order_engine is not None else OrderStatusEngine(clock)
        self._config = config if config is not None else StatusConfig()
        self._clock = clock
        self._event_bus = event_bus if event_bus is not None else NullEventBus()

    @property
    def config(self) -> StatusConfig:
        return self._config

    def _order_messages(self, orders: Iterable[OrderSnapshot]) -> tuple[list[str], list[str]]:
        errors: list[str] = []
        warnings: list[str] = []
        for order in orders:
            status = self._orders.compute_status(order).status

            if status in _POST_CONFIRMATION and order.confirmed_at is None:
                warnings.append(
                    f"Order {order.order_number} is in {status.value} but was never confirmed"
                )

            # Delivery implies the intermediate milestones are on record.
            if status == OrderStatus.DELIVERED:
                if order.completed_at is None:
                    errors.append(
                        f"Order {order.order_number} is delivered but missing completion date"
                    )
                if order.shipped_at is None:
                    errors.append(
                        f"Order {order.order_number} is delivered but missing shipped date"
                    )
        return errors, warnings

    def stale_inquiries(
        self, inquiries: Iterable[InquirySnapshot], now: datetime | None = None
    ) -> list[StaleInquiry]:
        """Inquiries stuck in NEW or IN_PROGRESS beyond the configured age."""
        moment = now if now is not None else self._clock()
        thresholds = {
            InquiryStatus.NEW: timedelta(days=self._config.stale_new_days),
            InquiryStatus.IN_PROGRESS: timedelta(days=self._config.stale_in_progress_days),
        }

        stale: list[StaleInquiry] = []
        for inquiry in inquiries:
            if inquiry.created_at is None or inquiry.status not in thresholds:
                continue
            status = InquiryStatus(inquiry.status)
            age = moment - inquiry.created_at
            if age > thresholds[status]:
                stale.append(StaleInquiry(inquiry=inquiry, status=status, age_days=age.days))
        return stale

    def check_orders(self, orders: Iterable[OrderSnapshot]) -> ValidationResult:
        errors, warnings = self._order_messages(orders)
        return ValidationResult.from_messages(errors, warnings)

    def check_inquiries(self, inquiries: Iterable[InquirySnapshot]) -> ValidationResult:
        warnings = [
            f"Inquiry {entry.inquiry.id} has been in {entry.status.name} status"
            f" for {entry.age_days} days"
            for entry in self.stale_inquiries(inquiries)
        ]
        return ValidationResult.from_messages([], warnings)

    def check(
        self,
        orders: Sequence[OrderSnapshot] = (),
        inquiries: Sequence[InquirySnapshot] = (),
    ) -> ValidationResult:
        """Audit both collections and return one aggregate result."""
        order_result = self.check_orders(orders)
        inquiry_result = self.check_inquiries(inquiries)

        result = ValidationResult.from_messages(
            [*order_result.errors, *inquiry_result.errors],
            [*order_result.warnings, *inquiry_result.warnings],
        )

        if self._config.emit_events:
            self._event_bus.emit(
                ConsistencyAuditEvent(
                    observed_at=self._clock(),
                    orders_checked=len(orders),
                    inquiries_checked=len(inquiries),
                    error_count=len(result.errors),
                    warning_count=len(result.warnings),
                )
            )
        return result
