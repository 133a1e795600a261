"""Public API for the hbm_status package.

Only symbols imported here are considered part of the stable,
supported external interface.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ----------------------------------------------------------------------
# Audit / reporting
# ----------------------------------------------------------------------
from hbm_status.core.audit.consistency import ConsistencyChecker, StaleInquiry
from hbm_status.core.audit.reporting import (
    actionable_inquiries,
    actionable_orders,
    inquiry_statistics,
    order_statistics,
    sort_orders_by_priority,
    status_distribution,
)

# ----------------------------------------------------------------------
# Config API
# ----------------------------------------------------------------------
from hbm_status.core.config.status_config import StatusConfig

# ----------------------------------------------------------------------
# Domain types
# ----------------------------------------------------------------------
from hbm_status.core.domain.results import (
    StatusComputationResult,
    StatusStatistics,
    TransitionCheck,
    ValidationResult,
)
from hbm_status.core.domain.statuses import (
    INQUIRY_ALLOWED_TRANSITIONS,
    ORDER_ALLOWED_TRANSITIONS,
    InquiryStatus,
    OrderStatus,
)
from hbm_status.core.domain.types import (
    InquirySnapshot,
    OrderSnapshot,
    QuotationRef,
    TransitionContext,
)

# ----------------------------------------------------------------------
# Events
# ----------------------------------------------------------------------
from hbm_status.core.events.event_bus import EventBus

# ----------------------------------------------------------------------
# History ledger
# ----------------------------------------------------------------------
from hbm_status.core.history.ledger import StatusHistoryLedger
from hbm_status.core.history.records import (
    DateRange,
    StatusChangeRecord,
    TimelineEntry,
    format_duration,
)
from hbm_status.core.history.storage import (
    InMemoryLedgerStorage,
    JsonlLedgerStorage,
    LedgerStorageError,
)
from hbm_status.core.services import StatusServices, build_status_services

# ----------------------------------------------------------------------
# Status engines
# ----------------------------------------------------------------------
from hbm_status.core.status.inquiry_status import InquiryStatusEngine
from hbm_status.core.status.order_status import OrderStatusEngine
from hbm_status.core.status.transition_validator import (
    BulkValidation,
    TransitionRequest,
    TransitionValidator,
)

# ----------------------------------------------------------------------
# Public API definition
# ----------------------------------------------------------------------

__all__ = [
    # Engines
    "OrderStatusEngine",
    "InquiryStatusEngine",
    "TransitionValidator",
    "TransitionRequest",
    "BulkValidation",

    # Ledger
    "StatusHistoryLedger",
    "StatusChangeRecord",
    "TimelineEntry",
    "DateRange",
    "InMemoryLedgerStorage",
    "JsonlLedgerStorage",
    "LedgerStorageError",
    "format_duration",

    # Audit
    "ConsistencyChecker",
    "StaleInquiry",
    "order_statistics",
    "inquiry_statistics",
    "status_distribution",
    "actionable_orders",
    "actionable_inquiries",
    "sort_orders_by_priority",

    # Domain
    "OrderStatus",
    "InquiryStatus",
    "ORDER_ALLOWED_TRANSITIONS",
    "INQUIRY_ALLOWED_TRANSITIONS",
    "OrderSnapshot",
    "InquirySnapshot",
    "QuotationRef",
    "TransitionContext",
    "StatusComputationResult",
    "ValidationResult",
    "TransitionCheck",
    "StatusStatistics",

    # Wiring
    "StatusConfig",
    "EventBus",
    "StatusServices",
    "build_status_services",

    # Version
    "__version__",
]

# ----------------------------------------------------------------------
# Package version
# ----------------------------------------------------------------------

try:
    __version__ = version("hbm-status")
except PackageNotFoundError:
    __version__ = "0.0.0"
