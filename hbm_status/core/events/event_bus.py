"""
Synchronous in-process event bus.

Events are delivered to sinks in registration order on the emitting thread.
A sink that raises propagates to the emitter; sinks are expected to be cheap
and non-failing.
"""
from __future__ import annotations

from typing import Iterable

from hbm_status.core.events.event_sink import EventSink, StatusEvent


class EventBus:
    """Dispatches status events to registered sinks."""

    def __init__(self, sinks: Iterable[EventSink] | None = None) -> None:
        self._sinks: list[EventSink] = list(sinks) if sinks is not None else []
        self._closed = False

    @property
    def sinks(self) -> tuple[EventSink, ...]:
        return tuple(self._sinks)

    def register(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    def emit(self, event: StatusEvent) -> None:
        if self._closed:
            return
        for sink in self._sinks:
            sink.on_event(event)

    def close(self) -> None:
        """Stop dispatching and close every sink that exposes ``close()``."""
        if self._closed:
            return

        for sink in self._sinks:
            close_fn = getattr(sink, "close", None)
            if callable(close_fn):
                close_fn()

        self._closed = True
