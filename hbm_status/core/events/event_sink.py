"""
Event sink interface.

Sinks consume the domain events in ``events.py``.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Union

if TYPE_CHECKING:
    from hbm_status.core.events.events import (
        ConsistencyAuditEvent,
        ForcedTransitionEvent,
        StatusChangedEvent,
    )

StatusEvent = Union["StatusChangedEvent", "ForcedTransitionEvent", "ConsistencyAuditEvent"]


class EventSink(Protocol):
    def on_event(self, event: StatusEvent) -> None:
        """Consume a domain event."""
