from __future__ import annotations

from hbm_status.core.events.event_bus import EventBus
from hbm_status.core.events.event_sink import StatusEvent


class CollectingSink:
    """Keeps every event in memory, in emission order."""

    def __init__(self) -> None:
        self.events: list[StatusEvent] = []

    def on_event(self, event: StatusEvent) -> None:
        self.events.append(event)


class NullEventBus(EventBus):
    """EventBus without sinks; the default when no bus is injected."""

    def __init__(self) -> None:
        super().__init__(sinks=[])
