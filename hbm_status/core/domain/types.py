"""Snapshot models consumed by the status engines.

Snapshots are immutable copies of an entity's persisted fields, assembled by
the calling repository on every read. They are the JSON-schema "source of
truth" for the engine boundary (see ``core/schemas``).

Identity fields are optional on the models. A snapshot missing its id or
creation date still parses, and ``validate_snapshot`` reports the gap.
"""

# pylint: disable=missing-class-docstring
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hbm_status.core.domain.clock import as_utc

EntityType = Literal["order", "inquiry"]


class QuotationRef(BaseModel):
    """Reference to a quotation attached to an order."""

    id: str = ""
    valid_until: datetime | None = None
    is_active: bool

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("valid_until", mode="after")
    @classmethod
    def _normalize_tz(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None


class OrderSnapshot(BaseModel):
    """Point-in-time view of an order's lifecycle fields."""

    id: str = ""
    order_number: str = ""
    created_at: datetime | None = None

    quoted_at: datetime | None = None
    confirmed_at: datetime | None = None
    production_started_at: datetime | None = None
    completed_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    canceled_at: datetime | None = None

    # Opaque reference: only its presence matters for status computation.
    production_stage_id: str | None = None

    quotations: tuple[QuotationRef, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator(
        "created_at",
        "quoted_at",
        "confirmed_at",
        "production_started_at",
        "completed_at",
        "shipped_at",
        "delivered_at",
        "canceled_at",
        mode="after",
    )
    @classmethod
    def _normalize_tz(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None

    @classmethod
    def from_json_obj(cls, obj: dict[str, Any]) -> OrderSnapshot:
        """Create a snapshot from a JSON-compatible object."""
        return cls.model_validate(obj)


class InquirySnapshot(BaseModel):
    """Point-in-time view of an inquiry.

    ``status`` is the raw integer code as stored; out-of-range values are
    accepted here and handled by the inquiry engine.
    """

    id: str = ""
    status: int | None = None
    created_at: datetime | None = None

    accepted_at: datetime | None = None
    rejected_at: datetime | None = None
    closed_at: datetime | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("created_at", "accepted_at", "rejected_at", "closed_at", mode="after")
    @classmethod
    def _normalize_tz(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None

    @classmethod
    def from_json_obj(cls, obj: dict[str, Any]) -> InquirySnapshot:
        return cls.model_validate(obj)


class TransitionContext(BaseModel):
    """Caller-supplied context for a proposed status change.

    ``allow_force_transition`` is the administrative escape hatch: a transition
    that violates the transition table is downgraded from an error to a
    warning and audit-logged.
    """

    changed_by: str | None = None
    reason: str | None = None
    allow_force_transition: bool = False

    model_config = ConfigDict(extra="forbid", frozen=True)
