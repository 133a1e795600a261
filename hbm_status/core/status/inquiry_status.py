"""Inquiry status computation.

Unlike orders, the authoritative signal for an inquiry is its stored integer
code. Timestamps only annotate the factor trace and feed validation.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable

from hbm_status.core.domain import statuses
from hbm_status.core.domain.clock import Clock, utc_now
from hbm_status.core.domain.results import StatusComputationResult, TransitionCheck
from hbm_status.core.domain.statuses import (
    INQUIRY_STATUS_LABELS,
    UNKNOWN_STATUS_LABEL,
    InquiryStatus,
)
from hbm_status.core.domain.types import InquirySnapshot

LOGGER = logging.getLogger(__name__)


def _stamp(prefix: str, value: datetime | None) -> list[str]:
    return [f"{prefix} on {value.isoformat()}"] if value is not None else []


_FACTOR_BUILDERS: dict[InquiryStatus, Callable[[InquirySnapshot], list[str]]] = {
    InquiryStatus.REJECTED: lambda s: ["Inquiry has been rejected", *_stamp("Rejected", s.rejected_at)],
    InquiryStatus.NEW: lambda s: ["Inquiry is in new state"],
    InquiryStatus.ACCEPTED: lambda s: ["Inquiry has been accepted", *_stamp("Accepted", s.accepted_at)],
    InquiryStatus.IN_PROGRESS: lambda s: [
        "Inquiry is being processed",
        *(["Previously accepted and now in progress"] if s.accepted_at is not None else []),
    ],
    InquiryStatus.CLOSED: lambda s: ["Inquiry has been closed", *_stamp("Closed", s.closed_at)],
}

# (timestamp field, error) pairs: none of these may precede created_at.
_NOT_BEFORE_CREATION: tuple[tuple[str, str], ...] = (
    ("accepted_at", "Accepted date cannot be before creation date"),
    ("rejected_at", "Rejected date cannot be before creation date"),
    ("closed_at", "Closed date cannot be before creation date"),
)

# Status -> (required timestamp field, error).
_REQUIRED_TIMESTAMP: dict[InquiryStatus, tuple[str, str]] = {
    InquiryStatus.ACCEPTED: ("accepted_at", "Accepted status requires accepted_at date"),
    InquiryStatus.REJECTED: ("rejected_at", "Rejected status requires rejected_at date"),
    InquiryStatus.CLOSED: ("closed_at", "Closed status requires closed_at date"),
}

_DESCRIPTIONS: dict[InquiryStatus, str] = {
    InquiryStatus.REJECTED: "Inquiry has been reviewed and rejected",
    InquiryStatus.NEW: "Inquiry has been submitted and is awaiting review",
    InquiryStatus.ACCEPTED: "Inquiry has been accepted and approved for processing",
    InquiryStatus.IN_PROGRESS: "Inquiry is currently being processed",
    InquiryStatus.CLOSED: "Inquiry has been completed and closed",
}


def coerce_inquiry_status(value: int | None) -> InquiryStatus | None:
    """Return the InquiryStatus for a raw code, or None if out of range."""
    if value is None:
        return None
    try:
        return InquiryStatus(value)
    except ValueError:
        return None


def missing_timestamps(status: InquiryStatus | None, snapshot: InquirySnapshot) -> list[str]:
    """Errors for a status whose supporting timestamp is not set on ``snapshot``."""
    if status not in _REQUIRED_TIMESTAMP:
        return []
    field_name, message = _REQUIRED_TIMESTAMP[status]
    return [message] if getattr(snapshot, field_name) is None else []


class InquiryStatusEngine:
    """Computes inquiry statuses and checks inquiry-specific business rules."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock

    @property
    def clock(self) -> Clock:
        return self._clock

    def compute_status(self, snapshot: InquirySnapshot) -> StatusComputationResult:
        """Return the computed status of ``snapshot``.

        Out-of-range codes never raise: the result degrades to NEW with a
        factor naming the invalid value, so callers can alert on it.
        """
        now = self._clock()
        status = coerce_inquiry_status(snapshot.status)

        if status is None:
            LOGGER.warning(
                "Invalid inquiry status code; defaulting to NEW",
                extra={"inquiry_id": snapshot.id, "status_code": snapshot.status},
            )
            return StatusComputationResult(
                status=InquiryStatus.NEW,
                computed_at=now,
                factors=(
                    f"Invalid status value: {snapshot.status}",
                    "Defaulted to NEW status due to invalid value",
                ),
                is_terminal=False,
                can_transition_to=statuses.inquiry_next_statuses(InquiryStatus.NEW),
            )

        return StatusComputationResult(
            status=status,
            computed_at=now,
            factors=tuple(_FACTOR_BUILDERS[status](snapshot)),
            is_terminal=statuses.is_terminal_inquiry_status(status),
            can_transition_to=statuses.inquiry_next_statuses(status),
        )

    # ---- Transition table lookups ----

    @staticmethod
    def is_valid_transition(current: InquiryStatus, target: InquiryStatus) -> bool:
        return statuses.is_valid_inquiry_transition(current, target)

    @staticmethod
    def next_statuses(status: InquiryStatus) -> tuple[InquiryStatus, ...]:
        return statuses.inquiry_next_statuses(status)

    @staticmethod
    def is_terminal(status: InquiryStatus) -> bool:
        return statuses.is_terminal_inquiry_status(status)

    # ---- Labels ----

    @staticmethod
    def label_from_value(value: int) -> str:
        return statuses.inquiry_label_from_value(value)

    @staticmethod
    def value_from_label(label: str) -> int:
        return statuses.inquiry_value_from_label(label)

    @staticmethod
    def describe(status: InquiryStatus | int) -> str:
        return _DESCRIPTIONS.get(coerce_inquiry_status(status), "Unknown inquiry status")

    # ---- Business rules ----

    @staticmethod
    def can_transition(
        current: InquiryStatus,
        target: InquiryStatus,
        snapshot: InquirySnapshot,
    ) -> TransitionCheck:
        """Layer inquiry business exceptions on top of the transition table."""
        if current == InquiryStatus.NEW and target == InquiryStatus.CLOSED:
            return TransitionCheck(
                False, "Cannot close inquiry without accepting or rejecting it first"
            )

        if not statuses.is_valid_inquiry_transition(current, target):
            return TransitionCheck(
                False,
                f"Transition from {current.label} to {target.label} is not allowed",
            )

        if target == InquiryStatus.ACCEPTED and snapshot.rejected_at is not None:
            return TransitionCheck(False, "Cannot accept an inquiry that has been rejected")

        if target == InquiryStatus.REJECTED and snapshot.accepted_at is not None:
            return TransitionCheck(False, "Cannot reject an inquiry that has been accepted")

        return TransitionCheck(True)

    @staticmethod
    def validate_snapshot(snapshot: InquirySnapshot) -> list[str]:
        """Return field-presence, range and date-consistency errors."""
        errors: list[str] = []

        if not snapshot.id:
            errors.append("Inquiry id is required")
        if snapshot.created_at is None:
            errors.append("Inquiry creation date is required")
        if snapshot.status is None:
            errors.append("Inquiry status must be a number")
        elif coerce_inquiry_status(snapshot.status) is None:
            errors.append("Inquiry status must be between 0 and 4")

        if snapshot.created_at is not None:
            for field_name, message in _NOT_BEFORE_CREATION:
                value = getattr(snapshot, field_name)
                if value is not None and value < snapshot.created_at:
                    errors.append(message)

        errors.extend(missing_timestamps(coerce_inquiry_status(snapshot.status), snapshot))

        if snapshot.accepted_at is not None and snapshot.rejected_at is not None:
            errors.append("Inquiry cannot be both accepted and rejected")

        return errors

    # ---- Batch helpers ----

    @staticmethod
    def filter_by_status(
        snapshots: Iterable[InquirySnapshot], status: InquiryStatus
    ) -> list[InquirySnapshot]:
        return [s for s in snapshots if s.status == status]

    @staticmethod
    def group_by_status(
        snapshots: Iterable[InquirySnapshot],
    ) -> dict[str, list[InquirySnapshot]]:
        """Group by label; unknown codes land under ``"unknown"``."""
        grouped: dict[str, list[InquirySnapshot]] = {}
        for snapshot in snapshots:
            label = (
                statuses.inquiry_label_from_value(snapshot.status)
                if snapshot.status is not None
                else UNKNOWN_STATUS_LABEL
            )
            grouped.setdefault(label, []).append(snapshot)
        return grouped

    @staticmethod
    def statistics(snapshots: Iterable[InquirySnapshot]) -> dict[str, int]:
        """Count snapshots per label, with every known label initialised to 0."""
        counts = {label: 0 for label in INQUIRY_STATUS_LABELS.values()}
        for label, members in InquiryStatusEngine.group_by_status(snapshots).items():
            counts[label] = counts.get(label, 0) + len(members)
        return counts
