"""
Logging event sink.
"""
from __future__ import annotations

import logging

from hbm_status.core.events.event_sink import StatusEvent
from hbm_status.core.events.events import (
    ConsistencyAuditEvent,
    ForcedTransitionEvent,
    StatusChangedEvent,
)


class LoggingEventSink:
    """Writes status events to a standard logger.

    Forced transitions and failed audits are logged at WARNING so they
    surface in default log configurations.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def on_event(self, event: StatusEvent) -> None:
        if isinstance(event, StatusChangedEvent):
            self._logger.info(
                "status_changed",
                extra={
                    "entity_type": event.entity_type,
                    "entity_id": event.entity_id,
                    "from_status": event.from_status,
                    "to_status": event.to_status,
                    "changed_by": event.changed_by,
                },
            )
        elif isinstance(event, ForcedTransitionEvent):
            self._logger.warning(
                "forced_transition",
                extra={
                    "entity_type": event.entity_type,
                    "entity_id": event.entity_id,
                    "from_status": event.from_status,
                    "to_status": event.to_status,
                    "changed_by": event.changed_by,
                    "reason": event.reason,
                },
            )
        elif isinstance(event, ConsistencyAuditEvent):
            level = logging.WARNING if event.error_count else logging.INFO
            self._logger.log(
                level,
                "consistency_audit",
                extra={
                    "orders_checked": event.orders_checked,
                    "inquiries_checked": event.inquiries_checked,
                    "error_count": event.error_count,
                    "warning_count": event.warning_count,
                },
            )
        else:
            self._logger.info("domain_event", extra={"event": event})
