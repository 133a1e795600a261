"""
Order and inquiry lifecycle definitions.

This module defines the canonical statuses, their priorities, and the allowed
transitions between them. It is intentionally passive and validation-only.

The transition tables below are the single source of truth for legality
checks. Engines, validators and auditors must consult them through the
helpers in this module rather than re-deriving legality on their own.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Mapping


class OrderStatus(str, Enum):
    """Computed lifecycle stage of an order."""

    REQUESTED = "requested"
    QUOTED = "quoted"
    EXPIRED = "expired"
    CONFIRMED = "confirmed"
    PRODUCTION = "production"
    COMPLETED = "completed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELED = "canceled"

    @property
    def label(self) -> str:
        return self.value


class InquiryStatus(IntEnum):
    """Inquiry lifecycle stage, stored as an integer code (0-4)."""

    REJECTED = 0
    NEW = 1
    ACCEPTED = 2
    IN_PROGRESS = 3
    CLOSED = 4

    @property
    def label(self) -> str:
        return INQUIRY_STATUS_LABELS[self]


# Labels are part of the API contract and must stay bit-exact.
INQUIRY_STATUS_LABELS: Mapping[InquiryStatus, str] = MappingProxyType(
    {
        InquiryStatus.REJECTED: "rejected",
        InquiryStatus.NEW: "new",
        InquiryStatus.ACCEPTED: "accepted",
        InquiryStatus.IN_PROGRESS: "in_progress",
        InquiryStatus.CLOSED: "closed",
    }
)

UNKNOWN_STATUS_LABEL: str = "unknown"


# Higher number wins when two statuses compete (canceled is highest).
ORDER_STATUS_PRIORITY: Mapping[OrderStatus, int] = MappingProxyType(
    {
        OrderStatus.CANCELED: 10,
        OrderStatus.DELIVERED: 9,
        OrderStatus.SHIPPED: 8,
        OrderStatus.COMPLETED: 7,
        OrderStatus.PRODUCTION: 6,
        OrderStatus.CONFIRMED: 5,
        OrderStatus.EXPIRED: 4,
        OrderStatus.QUOTED: 3,
        OrderStatus.REQUESTED: 2,
    }
)


# Allowed order status transitions.
#
# Key   : current status
# Value : set of allowed next statuses
#
# Notes:
# - delivered is not terminal: a delivered order can still be canceled.
# - canceled is the only terminal order status.
ORDER_ALLOWED_TRANSITIONS: Mapping[OrderStatus, frozenset[OrderStatus]] = MappingProxyType(
    {
        OrderStatus.REQUESTED: frozenset({OrderStatus.QUOTED, OrderStatus.CANCELED}),
        OrderStatus.QUOTED: frozenset(
            {
                OrderStatus.CONFIRMED,
                OrderStatus.EXPIRED,
                OrderStatus.CANCELED,
            }
        ),
        OrderStatus.EXPIRED: frozenset({OrderStatus.QUOTED, OrderStatus.CANCELED}),
        OrderStatus.CONFIRMED: frozenset({OrderStatus.PRODUCTION, OrderStatus.CANCELED}),
        OrderStatus.PRODUCTION: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELED}),
        OrderStatus.COMPLETED: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELED}),
        OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELED}),
        OrderStatus.DELIVERED: frozenset({OrderStatus.CANCELED}),
        OrderStatus.CANCELED: frozenset(),
    }
)


# Allowed inquiry status transitions. rejected and closed are terminal.
INQUIRY_ALLOWED_TRANSITIONS: Mapping[InquiryStatus, frozenset[InquiryStatus]] = MappingProxyType(
    {
        InquiryStatus.NEW: frozenset({InquiryStatus.ACCEPTED, InquiryStatus.REJECTED}),
        InquiryStatus.ACCEPTED: frozenset(
            {
                InquiryStatus.IN_PROGRESS,
                InquiryStatus.CLOSED,
                InquiryStatus.REJECTED,
            }
        ),
        InquiryStatus.IN_PROGRESS: frozenset({InquiryStatus.CLOSED, InquiryStatus.REJECTED}),
        InquiryStatus.REJECTED: frozenset(),
        InquiryStatus.CLOSED: frozenset(),
    }
)

# Presentation order for "next statuses" lists.
_INQUIRY_LIFECYCLE_ORDER: tuple[InquiryStatus, ...] = (
    InquiryStatus.NEW,
    InquiryStatus.ACCEPTED,
    InquiryStatus.IN_PROGRESS,
    InquiryStatus.CLOSED,
    InquiryStatus.REJECTED,
)


# ---------------------------------------------------------------------------
# Order helpers
# ---------------------------------------------------------------------------


def is_valid_order_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """Return True if the transition current -> target is allowed."""
    allowed = ORDER_ALLOWED_TRANSITIONS.get(current)
    if allowed is None:
        return False
    return target in allowed


def order_next_statuses(current: OrderStatus) -> tuple[OrderStatus, ...]:
    """Return the allowed next statuses, ordered by ascending priority."""
    allowed = ORDER_ALLOWED_TRANSITIONS.get(current, frozenset())
    return tuple(sorted(allowed, key=order_status_priority))


def is_terminal_order_status(status: OrderStatus) -> bool:
    """Return True if no transition leaves the given status."""
    return not ORDER_ALLOWED_TRANSITIONS.get(status)


def order_status_priority(status: OrderStatus) -> int:
    """Return the priority of a status (0 for anything unknown)."""
    return ORDER_STATUS_PRIORITY.get(status, 0)


def higher_priority(first: OrderStatus, second: OrderStatus) -> OrderStatus:
    """Return the status with the higher priority; ties resolve to ``first``."""
    if order_status_priority(first) >= order_status_priority(second):
        return first
    return second


# ---------------------------------------------------------------------------
# Inquiry helpers
# ---------------------------------------------------------------------------


def is_valid_inquiry_transition(current: InquiryStatus, target: InquiryStatus) -> bool:
    """Return True if the transition current -> target is allowed."""
    allowed = INQUIRY_ALLOWED_TRANSITIONS.get(current)
    if allowed is None:
        return False
    return target in allowed


def inquiry_next_statuses(current: InquiryStatus) -> tuple[InquiryStatus, ...]:
    allowed = INQUIRY_ALLOWED_TRANSITIONS.get(current, frozenset())
    return tuple(status for status in _INQUIRY_LIFECYCLE_ORDER if status in allowed)


def is_terminal_inquiry_status(status: InquiryStatus) -> bool:
    return not INQUIRY_ALLOWED_TRANSITIONS.get(status)


def inquiry_label_from_value(value: int) -> str:
    """Map an integer code to its label; unknown codes map to ``"unknown"``."""
    try:
        return INQUIRY_STATUS_LABELS[InquiryStatus(value)]
    except ValueError:
        return UNKNOWN_STATUS_LABEL


def inquiry_value_from_label(label: str) -> int:
    """Map a label back to its integer code; unknown labels map to NEW."""
    for status, status_label in INQUIRY_STATUS_LABELS.items():
        if status_label == label:
            return int(status)
    return int(InquiryStatus.NEW)


def status_label(status: OrderStatus | InquiryStatus | str) -> str:
    """Return the wire label for any status value."""
    if isinstance(status, InquiryStatus):
        return status.label
    if isinstance(status, OrderStatus):
        return status.value
    return str(status)
