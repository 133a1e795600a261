"""
Domain events emitted by the status subsystem.

These events represent immutable facts: an accepted status change, a forced
transition, or the outcome of a consistency audit. They are consumed by
loggers, recorders, and monitoring pipelines; nothing in the engine reads
them back.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class StatusChangedEvent:
    record_id: str
    entity_type: str
    entity_id: str
    from_status: str | None
    to_status: str
    changed_at: datetime
    changed_by: str | None


@dataclass(frozen=True, slots=True)
class ForcedTransitionEvent:
    entity_type: str
    entity_id: str
    from_status: str
    to_status: str
    changed_by: str | None
    reason: str | None
    observed_at: datetime


@dataclass(frozen=True, slots=True)
class ConsistencyAuditEvent:
    observed_at: datetime

    orders_checked: int
    inquiries_checked: int

    error_count: int
    warning_count: int
