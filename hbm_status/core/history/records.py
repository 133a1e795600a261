"""Ledger record models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Any, Mapping

from hbm_status.core.domain.clock import as_utc


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


@dataclass(frozen=True, slots=True)
class StatusChangeRecord:
    """One immutable entry of the status audit trail.

    Records are only ever created by ``StatusHistoryLedger.record``. Metadata is
    frozen on construction; nested mappings and sequences become read-only.
    """

    id: str
    entity_type: str
    entity_id: str
    from_status: str | None
    to_status: str
    changed_at: datetime
    changed_by: str | None = None
    reason: str | None = None
    metadata: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.metadata is not None:
            object.__setattr__(self, "metadata", _freeze(self.metadata))

    def to_json_obj(self) -> dict[str, Any]:
        obj: dict[str, Any] = {
            "id": self.id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "changed_at": self.changed_at.isoformat(),
            "changed_by": self.changed_by,
            "reason": self.reason,
        }
        if self.metadata is not None:
            obj["metadata"] = _thaw(self.metadata)
        return obj

    @classmethod
    def from_json_obj(cls, obj: Mapping[str, Any]) -> StatusChangeRecord:
        return cls(
            id=obj["id"],
            entity_type=obj["entity_type"],
            entity_id=obj["entity_id"],
            from_status=obj.get("from_status"),
            to_status=obj["to_status"],
            changed_at=as_utc(datetime.fromisoformat(obj["changed_at"])),
            changed_by=obj.get("changed_by"),
            reason=obj.get("reason"),
            metadata=obj.get("metadata"),
        )


@dataclass(frozen=True, slots=True)
class TimelineEntry:
    """A ledger record annotated with how long the entity stayed in it."""

    status: str
    changed_at: datetime
    duration: timedelta
    is_active: bool
    changed_by: str | None = None
    reason: str | None = None
    metadata: Mapping[str, Any] | None = field(default=None)


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive time window."""

    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self) -> None:
        # Naive bounds are UTC, matching snapshot timestamps.
        if self.start is not None:
            object.__setattr__(self, "start", as_utc(self.start))
        if self.end is not None:
            object.__setattr__(self, "end", as_utc(self.end))

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True


def format_duration(duration: timedelta) -> str:
    """Render a duration as ``1d 2h 3m``, ``2h 5m``, ``3m 4s`` or ``5s``."""
    seconds = int(duration.total_seconds())
    minutes, secs = divmod(seconds, 60)
    hours, mins = divmod(minutes, 60)
    days, hrs = divmod(hours, 24)

    if days > 0:
        return f"{days}d {hrs}h {mins}m"
    if hours > 0:
        return f"{hours}h {mins}m"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{seconds}s"
