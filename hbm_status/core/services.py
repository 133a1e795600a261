"""Process-wide wiring of the status subsystem.

``build_status_services`` is meant to be called once at startup; the returned
bundle is passed by reference to the order and inquiry services.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from hbm_status.core.audit.consistency import ConsistencyChecker
from hbm_status.core.config.status_config import StatusConfig
from hbm_status.core.domain.clock import Clock, utc_now
from hbm_status.core.events.event_bus import EventBus
from hbm_status.core.events.event_sink import EventSink
from hbm_status.core.events.sinks.null_event_bus import NullEventBus
from hbm_status.core.events.sinks.sink_logging import LoggingEventSink
from hbm_status.core.history.ledger import StatusHistoryLedger
from hbm_status.core.history.storage import (
    InMemoryLedgerStorage,
    JsonlLedgerStorage,
    LedgerStorage,
)
from hbm_status.core.status.inquiry_status import InquiryStatusEngine
from hbm_status.core.status.order_status import OrderStatusEngine
from hbm_status.core.status.transition_validator import TransitionValidator


@dataclass(frozen=True, slots=True)
class StatusServices:
    config: StatusConfig
    event_bus: EventBus
    orders: OrderStatusEngine
    inquiries: InquiryStatusEngine
    validator: TransitionValidator
    ledger: StatusHistoryLedger
    checker: ConsistencyChecker

    def close(self) -> None:
        self.event_bus.close()
        close_fn = getattr(self.ledger_storage, "close", None)
        if callable(close_fn):
            close_fn()

    @property
    def ledger_storage(self) -> LedgerStorage:
        return self.ledger.storage


def build_status_services(
    config: StatusConfig | None = None,
    *,
    clock: Clock = utc_now,
    sinks: Iterable[EventSink] = (),
) -> StatusServices:
    """Wire the status subsystem from ``config``.

    Extra ``sinks`` are registered after the logging sink. They need
    ``emit_events``; passing sinks with events disabled raises ``ValueError``.
    """
    cfg = config if config is not None else StatusConfig()
    extra_sinks = list(sinks)

    if not cfg.emit_events and extra_sinks:
        raise ValueError("Event sinks were supplied but emit_events is disabled")

    if cfg.emit_events:
        event_bus = EventBus(
            [LoggingEventSink(logging.getLogger("hbm_status.events")), *extra_sinks]
        )
    else:
        event_bus = NullEventBus()

    storage: LedgerStorage
    if cfg.ledger_path is not None:
        storage = JsonlLedgerStorage(cfg.ledger_path)
    else:
        storage = InMemoryLedgerStorage()

    orders = OrderStatusEngine(clock)
    inquiries = InquiryStatusEngine(clock)

    return StatusServices(
        config=cfg,
        event_bus=event_bus,
        orders=orders,
        inquiries=inquiries,
        validator=TransitionValidator(orders, inquiries, event_bus),
        ledger=StatusHistoryLedger(storage, event_bus=event_bus, clock=clock),
        checker=ConsistencyChecker(orders, cfg, clock=clock, event_bus=event_bus),
    )
