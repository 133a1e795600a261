"""Transition validation for orders and inquiries.

The validator is advisory: it checks whether a proposed status change is
legal and whether the snapshot already carries the fields the target status
requires. It never mutates or persists anything; the caller inspects
``errors`` / ``warnings`` and decides whether to proceed.
"""

# pylint: disable=too-many-branches
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from hbm_status.core.domain import statuses
from hbm_status.core.domain.results import ValidationResult
from hbm_status.core.domain.statuses import InquiryStatus, OrderStatus, status_label
from hbm_status.core.domain.types import (
    EntityType,
    InquirySnapshot,
    OrderSnapshot,
    TransitionContext,
)
from hbm_status.core.events.events import ForcedTransitionEvent
from hbm_status.core.events.sinks.null_event_bus import NullEventBus
from hbm_status.core.status.inquiry_status import (
    InquiryStatusEngine,
    coerce_inquiry_status,
    missing_timestamps,
)
from hbm_status.core.status.order_status import OrderStatusEngine

if TYPE_CHECKING:
    from hbm_status.core.events.event_bus import EventBus

LOGGER = logging.getLogger(__name__)

_NO_CONTEXT = TransitionContext()


# ---------------------------------------------------------------------------
# Bulk request / response models
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TransitionRequest:
    entity_type: EntityType
    entity_id: str
    snapshot: OrderSnapshot | InquirySnapshot
    target_status: OrderStatus | InquiryStatus
    context: TransitionContext | None = None


@dataclass(frozen=True, slots=True)
class BulkValidation:
    entity_id: str
    validation: ValidationResult


# ---------------------------------------------------------------------------
# Required supporting fields per target status
# ---------------------------------------------------------------------------


def _order_required_fields(status: OrderStatus, snapshot: OrderSnapshot) -> list[str]:
    if status == OrderStatus.QUOTED:
        if snapshot.quoted_at is None and not snapshot.quotations:
            return ["Quoted status requires quoted_at date or quotation records"]
    elif status == OrderStatus.CONFIRMED:
        if snapshot.confirmed_at is None:
            return ["Confirmed status requires confirmed_at date"]
    elif status == OrderStatus.PRODUCTION:
        if snapshot.production_started_at is None and not snapshot.production_stage_id:
            return ["Production status requires production_started_at date or production_stage_id"]
    elif status == OrderStatus.COMPLETED:
        if snapshot.completed_at is None:
            return ["Completed status requires completed_at date"]
    elif status == OrderStatus.SHIPPED:
        if snapshot.shipped_at is None:
            return ["Shipped status requires shipped_at date"]
    elif status == OrderStatus.DELIVERED:
        if snapshot.delivered_at is None:
            return ["Delivered status requires delivered_at date"]
    elif status == OrderStatus.CANCELED:
        if snapshot.canceled_at is None:
            return ["Canceled status requires canceled_at date"]
    return []


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------


class TransitionValidator:
    """Cross-checks proposed status changes against computed current status.

    Algorithm, per entity:
    (a) validate the snapshot and short-circuit if malformed
    (b) compute the current status
    (c) check table legality; forced transitions downgrade to warnings
    (d) check target-specific required fields
    (e) add soft warnings for unusual but legal sequences
    """

    def __init__(
        self,
        order_engine: OrderStatusEngine | None = None,
        inquiry_engine: InquiryStatusEngine | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._orders = order_engine if order_engine is not None else OrderStatusEngine()
        self._inquiries = inquiry_engine if inquiry_engine is not None else InquiryStatusEngine()
        self._event_bus = event_bus if event_bus is not None else NullEventBus()

    # ---- Orders ----

    def validate_order_transition(
        self,
        snapshot: OrderSnapshot,
        target: OrderStatus,
        context: TransitionContext | None = None,
    ) -> ValidationResult:
        ctx = context if context is not None else _NO_CONTEXT

        errors = self._orders.validate_snapshot(snapshot)
        warnings: list[str] = []
        if errors:
            return ValidationResult.from_messages(errors, warnings)

        current_result = self._orders.compute_status(snapshot)
        current = current_result.status

        if not self._orders.is_valid_transition(current, target):
            if ctx.allow_force_transition:
                warnings.append(
                    f"Forced transition from {current.value} to {target.value}"
                    " - this bypasses normal business rules"
                )
                self._audit_forced("order", snapshot.id, current, target, ctx)
            else:
                allowed = ", ".join(s.value for s in current_result.can_transition_to)
                errors.append(
                    f"Invalid transition from {current.value} to {target.value}."
                    f" Valid transitions: {allowed or 'none'}"
                )

        errors.extend(_order_required_fields(target, snapshot))

        if target == OrderStatus.CONFIRMED:
            if current not in (OrderStatus.QUOTED, OrderStatus.EXPIRED):
                warnings.append("Orders are typically confirmed after being quoted")

        elif target == OrderStatus.COMPLETED:
            if current != OrderStatus.PRODUCTION:
                warnings.append("Orders are typically completed after production")

        elif target == OrderStatus.SHIPPED:
            if current != OrderStatus.COMPLETED:
                warnings.append("Orders are typically shipped after completion")

        elif target == OrderStatus.DELIVERED:
            if current != OrderStatus.SHIPPED:
                warnings.append("Orders are typically delivered after shipping")

        elif target == OrderStatus.CANCELED:
            if not ctx.reason:
                warnings.append("Cancellation reason should be provided")
            if not ctx.changed_by:
                warnings.append("Cancellations should include who canceled the order")

        elif target == OrderStatus.EXPIRED:
            now = self._orders.clock()
            if not any(
                q.valid_until is not None and q.valid_until < now for q in snapshot.quotations
            ):
                errors.append("Cannot transition to expired status without expired quotations")

        if current_result.is_terminal and target != OrderStatus.CANCELED:
            warnings.append(f"Transitioning from terminal status {current.value} is unusual")

        return ValidationResult.from_messages(errors, warnings)

    # ---- Inquiries ----

    def validate_inquiry_transition(
        self,
        snapshot: InquirySnapshot,
        target: InquiryStatus,
        context: TransitionContext | None = None,
    ) -> ValidationResult:
        ctx = context if context is not None else _NO_CONTEXT

        errors = self._inquiries.validate_snapshot(snapshot)
        warnings: list[str] = []
        if errors:
            return ValidationResult.from_messages(errors, warnings)

        # A valid snapshot carries an in-range code, so this is the stored status.
        current = self._inquiries.compute_status(snapshot).status

        check = self._inquiries.can_transition(current, target, snapshot)
        if not check.can_transition:
            if ctx.allow_force_transition:
                warnings.append(
                    f"Forced transition from {current.label} to {target.label}"
                    " - this bypasses normal business rules"
                )
                self._audit_forced("inquiry", snapshot.id, current, target, ctx)
            else:
                errors.append(check.reason or "Invalid status transition")

        # Accept/reject conflicts are already reported by can_transition.
        errors.extend(missing_timestamps(target, snapshot))

        if target == InquiryStatus.REJECTED:
            if not ctx.reason:
                warnings.append("Rejection reason should be provided")
            if not ctx.changed_by:
                warnings.append("Rejections should include who rejected the inquiry")

        elif target == InquiryStatus.IN_PROGRESS:
            if current != InquiryStatus.ACCEPTED:
                warnings.append("Inquiries are typically moved to in-progress after acceptance")

        elif target == InquiryStatus.CLOSED:
            if current == InquiryStatus.NEW:
                warnings.append("Closing an inquiry without processing it first is unusual")
            if not ctx.reason:
                warnings.append("Closure reason should be provided")

        return ValidationResult.from_messages(errors, warnings)

    # ---- Batch ----

    def validate_bulk_transitions(
        self, requests: Iterable[TransitionRequest]
    ) -> list[BulkValidation]:
        """Validate each request independently; results keep input order."""
        results: list[BulkValidation] = []
        for request in requests:
            if request.entity_type == "order":
                validation = self.validate_order_transition(
                    request.snapshot,  # type: ignore[arg-type]
                    OrderStatus(request.target_status),
                    request.context,
                )
            else:
                validation = self.validate_inquiry_transition(
                    request.snapshot,  # type: ignore[arg-type]
                    InquiryStatus(request.target_status),
                    request.context,
                )
            results.append(BulkValidation(entity_id=request.entity_id, validation=validation))
        return results

    # ---- Required fields ----

    @staticmethod
    def required_fields(
        entity_type: EntityType,
        status: OrderStatus | InquiryStatus | str | int,
        snapshot: OrderSnapshot | InquirySnapshot,
    ) -> list[str]:
        """Return the supporting-field errors for ``status`` on its own.

        Unknown statuses have no requirements.
        """
        if entity_type == "order":
            try:
                order_status = OrderStatus(status)
            except ValueError:
                return []
            return _order_required_fields(order_status, snapshot)  # type: ignore[arg-type]

        if isinstance(status, str):
            status = (
                int(status)
                if status.lstrip("-").isdigit()
                else statuses.inquiry_value_from_label(status)
            )
        inquiry_status = coerce_inquiry_status(int(status))
        if inquiry_status is None:
            return []
        return missing_timestamps(inquiry_status, snapshot)  # type: ignore[arg-type]

    # ---- Internal ----

    def _audit_forced(
        self,
        entity_type: EntityType,
        entity_id: str,
        current: OrderStatus | InquiryStatus,
        target: OrderStatus | InquiryStatus,
        ctx: TransitionContext,
    ) -> None:
        LOGGER.warning(
            "Forced status transition",
            extra={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "from_status": status_label(current),
                "to_status": status_label(target),
                "changed_by": ctx.changed_by,
                "reason": ctx.reason,
            },
        )
        self._event_bus.emit(
            ForcedTransitionEvent(
                entity_type=entity_type,
                entity_id=entity_id,
                from_status=status_label(current),
                to_status=status_label(target),
                changed_by=ctx.changed_by,
                reason=ctx.reason,
                observed_at=self._orders.clock(),
            )
        )
