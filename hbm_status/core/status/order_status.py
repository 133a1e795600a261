"""Order status computation.

An order's status is never stored: it is inferred from which lifecycle
timestamps are set. Rules are evaluated in fixed descending priority and the
first match wins, so a canceled order is reported as canceled even when it
also carries a delivery date.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Sequence

from hbm_status.core.domain import statuses
from hbm_status.core.domain.clock import Clock, utc_now
from hbm_status.core.domain.results import StatusComputationResult
from hbm_status.core.domain.statuses import OrderStatus
from hbm_status.core.domain.types import OrderSnapshot, QuotationRef

# ---------------------------------------------------------------------------
# Status rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StatusRule:
    """One entry of the ordered rule list: ``(predicate, status, factors)``."""

    status: OrderStatus
    predicate: Callable[[OrderSnapshot, datetime], bool]
    factors: Callable[[OrderSnapshot], tuple[str, ...]]


def _fixed(*factors: str) -> Callable[[OrderSnapshot], tuple[str, ...]]:
    return lambda _snapshot: factors


def _production_factors(snapshot: OrderSnapshot) -> tuple[str, ...]:
    factors: list[str] = []
    if snapshot.production_started_at is not None:
        factors += ["production_started_at is set", "Production has started"]
    if snapshot.production_stage_id:
        factors += ["production_stage_id is set", "Order assigned to production stage"]
    return tuple(factors)


def _active_quotations(snapshot: OrderSnapshot) -> list[QuotationRef]:
    return [q for q in snapshot.quotations if q.is_active]


def _has_expired_quotation(snapshot: OrderSnapshot, now: datetime) -> bool:
    # Strict comparison: a quotation valid until exactly "now" is still valid.
    return any(
        q.valid_until is not None and q.valid_until < now
        for q in _active_quotations(snapshot)
    )


ORDER_STATUS_RULES: tuple[StatusRule, ...] = (
    StatusRule(
        OrderStatus.CANCELED,
        lambda s, _now: s.canceled_at is not None,
        _fixed("canceled_at is set", "Order has been canceled"),
    ),
    StatusRule(
        OrderStatus.DELIVERED,
        lambda s, _now: s.delivered_at is not None,
        _fixed("delivered_at is set", "Order has been delivered"),
    ),
    StatusRule(
        OrderStatus.SHIPPED,
        lambda s, _now: s.shipped_at is not None,
        _fixed("shipped_at is set", "Order has been shipped"),
    ),
    StatusRule(
        OrderStatus.COMPLETED,
        lambda s, _now: s.completed_at is not None,
        _fixed("completed_at is set", "Order has been completed"),
    ),
    StatusRule(
        OrderStatus.PRODUCTION,
        lambda s, _now: s.production_started_at is not None or bool(s.production_stage_id),
        _production_factors,
    ),
    StatusRule(
        OrderStatus.CONFIRMED,
        lambda s, _now: s.confirmed_at is not None,
        _fixed("confirmed_at is set", "Order has been confirmed"),
    ),
    StatusRule(
        OrderStatus.EXPIRED,
        _has_expired_quotation,
        _fixed("active quotation is expired", "Quotation has expired"),
    ),
    StatusRule(
        OrderStatus.QUOTED,
        lambda s, _now: bool(_active_quotations(s)),
        _fixed("active quotation exists", "Order has active quotation"),
    ),
    StatusRule(
        OrderStatus.QUOTED,
        lambda s, _now: s.quoted_at is not None,
        _fixed("quoted_at is set", "Order has been quoted"),
    ),
    StatusRule(
        OrderStatus.REQUESTED,
        lambda _s, _now: True,
        _fixed("default status", "Order is in initial requested state"),
    ),
)


# (later field, earlier field, error) pairs checked by validate_snapshot.
_DATE_ORDERING: tuple[tuple[str, str, str], ...] = (
    ("quoted_at", "created_at", "Quoted date cannot be before creation date"),
    ("confirmed_at", "quoted_at", "confirmed_at must be after quoted_at"),
    (
        "production_started_at",
        "confirmed_at",
        "Production start date cannot be before confirmed date",
    ),
    (
        "completed_at",
        "production_started_at",
        "Completion date cannot be before production start date",
    ),
    ("shipped_at", "completed_at", "Shipped date cannot be before completion date"),
    ("delivered_at", "shipped_at", "Delivered date cannot be before shipped date"),
)

_DESCRIPTIONS: dict[OrderStatus, str] = {
    OrderStatus.REQUESTED: "Order has been submitted and is awaiting quotation",
    OrderStatus.QUOTED: "Order has been quoted and is awaiting customer confirmation",
    OrderStatus.EXPIRED: "Order quotation has expired and needs to be updated",
    OrderStatus.CONFIRMED: "Order has been confirmed and is ready for production",
    OrderStatus.PRODUCTION: "Order is currently in production",
    OrderStatus.COMPLETED: "Order production has been completed",
    OrderStatus.SHIPPED: "Order has been shipped to the customer",
    OrderStatus.DELIVERED: "Order has been delivered to the customer",
    OrderStatus.CANCELED: "Order has been canceled",
}


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class OrderStatusEngine:
    """Computes order statuses from snapshots.

    The engine holds no state between calls; ``clock`` only supplies "now"
    for quotation expiry and ``computed_at``.
    """

    def __init__(
        self,
        clock: Clock = utc_now,
        rules: Sequence[StatusRule] = ORDER_STATUS_RULES,
    ) -> None:
        self._clock = clock
        self._rules = tuple(rules)

    @property
    def clock(self) -> Clock:
        return self._clock

    def compute_status(self, snapshot: OrderSnapshot) -> StatusComputationResult:
        """Return the computed status of ``snapshot`` (first matching rule)."""
        now = self._clock()
        for rule in self._rules:
            if rule.predicate(snapshot, now):
                return self._result(rule.status, now, rule.factors(snapshot))

        # Unreachable with the default rules (last rule always matches).
        return self._result(OrderStatus.REQUESTED, now, ("default status",))

    @staticmethod
    def _result(
        status: OrderStatus, now: datetime, factors: tuple[str, ...]
    ) -> StatusComputationResult:
        return StatusComputationResult(
            status=status,
            computed_at=now,
            factors=factors,
            is_terminal=statuses.is_terminal_order_status(status),
            can_transition_to=statuses.order_next_statuses(status),
        )

    # ---- Transition table lookups ----

    @staticmethod
    def is_valid_transition(current: OrderStatus, target: OrderStatus) -> bool:
        return statuses.is_valid_order_transition(current, target)

    @staticmethod
    def next_statuses(status: OrderStatus) -> tuple[OrderStatus, ...]:
        return statuses.order_next_statuses(status)

    @staticmethod
    def is_terminal(status: OrderStatus) -> bool:
        return statuses.is_terminal_order_status(status)

    @staticmethod
    def priority(status: OrderStatus) -> int:
        return statuses.order_status_priority(status)

    @staticmethod
    def higher_priority(first: OrderStatus, second: OrderStatus) -> OrderStatus:
        return statuses.higher_priority(first, second)

    @staticmethod
    def describe(status: OrderStatus) -> str:
        return _DESCRIPTIONS.get(status, "Unknown status")

    # ---- Validation ----

    @staticmethod
    def validate_snapshot(snapshot: OrderSnapshot) -> list[str]:
        """Return field-presence and date-ordering errors (empty when valid)."""
        errors: list[str] = []

        if not snapshot.id:
            errors.append("Order id is required")
        if not snapshot.order_number:
            errors.append("Order order_number is required")
        if snapshot.created_at is None:
            errors.append("Order creation date is required")

        for later_field, earlier_field, message in _DATE_ORDERING:
            later = getattr(snapshot, later_field)
            earlier = getattr(snapshot, earlier_field)
            if later is not None and earlier is not None and later < earlier:
                errors.append(message)

        for index, quotation in enumerate(snapshot.quotations, start=1):
            if not quotation.id:
                errors.append(f"Quotation {index} is missing ID")
            if quotation.valid_until is None:
                errors.append(f"Quotation {index} is missing valid until date")

        return errors

    # ---- Batch helpers ----

    def filter_by_status(
        self, snapshots: Iterable[OrderSnapshot], status: OrderStatus
    ) -> list[OrderSnapshot]:
        return [s for s in snapshots if self.compute_status(s).status == status]

    def group_by_status(
        self, snapshots: Iterable[OrderSnapshot]
    ) -> dict[OrderStatus, list[OrderSnapshot]]:
        grouped: dict[OrderStatus, list[OrderSnapshot]] = {}
        for snapshot in snapshots:
            status = self.compute_status(snapshot).status
            grouped.setdefault(status, []).append(snapshot)
        return grouped
