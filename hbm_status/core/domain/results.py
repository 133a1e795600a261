"""
Result models returned by the status engines and validators.

These models are intentionally NOT part of the JSON-schema "source of truth".
They are plain immutable values that callers serialize into API responses
via ``to_dict()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from hbm_status.core.domain.statuses import InquiryStatus, OrderStatus, status_label

Status = OrderStatus | InquiryStatus


@dataclass(frozen=True, slots=True)
class StatusComputationResult:
    """Outcome of computing an entity's current status.

    ``factors`` is a human-auditable trace of the fields that drove the
    decision, in the order they were evaluated.
    """

    status: Status
    computed_at: datetime
    factors: tuple[str, ...]
    is_terminal: bool
    can_transition_to: tuple[Status, ...]

    @property
    def label(self) -> str:
        return status_label(self.status)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.label,
            "computed_at": self.computed_at.isoformat(),
            "factors": list(self.factors),
            "is_terminal": self.is_terminal,
            "can_transition_to": [status_label(s) for s in self.can_transition_to],
        }


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Advisory outcome of a validation or audit.

    Errors block a transition; warnings never do.
    """

    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @classmethod
    def from_messages(cls, errors: list[str], warnings: list[str]) -> ValidationResult:
        return cls(is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings))

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True, slots=True)
class TransitionCheck:
    """Whether an inquiry may move to a target status, and why not."""

    can_transition: bool
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class StatusStatistics:
    """Per-status counts over a batch of snapshots."""

    entity_type: str
    status_counts: dict[str, int]
    total_count: int
    computed_at: datetime
