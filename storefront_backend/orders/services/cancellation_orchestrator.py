# orders/services/cancellation_orchestrator.py

"""
CANCELLATION ORCHESTRATOR

Steps:
1) lock the row, check the precondition, fulfillment_status -> cancelled
   (the ONLY required step; it commits before anything else runs)
2) refund the remaining balance if the locked row showed a captured payment
3) restore committed stock
4) release outstanding holds
5) notify customer + merchant after commit

Steps 2-4 are compensations, each caught and logged on its own; a failure
is reported as a warning on the result for manual follow-up. Once step 1
commits, mark_paid refuses the order, so a capture racing the cancel is
either seen and refunded here or routed to the orphaned-payment alert.
Cancelling an already cancelled order is a no-op, so stock is restored once.
"""

from __future__ import annotations

import logging

from django.db import transaction

from orders.models import Order
from orders.services.exceptions import InvalidTransition, RefundError
from orders.services.inventory import InventoryReservationManager
from orders.services.ledger import OrderLedger
from orders.services.order_events import OrderEvents
from orders.services.order_lifecycle import allowed_targets, validate_transition
from orders.services.refund_service import RefundService
from orders.services.results import CancellationResult, StepOutcome
from shipping.services.background import schedule_after_commit

logger = logging.getLogger(__name__)


class CancellationOrchestrator:
    def __init__(self, *, refunds=None, inventory=None, ledger=None, events=None):
        self.events = events or OrderEvents()
        self.inventory = inventory or InventoryReservationManager()
        self.refunds = refunds or RefundService(inventory=self.inventory, events=self.events)
        self.ledger = ledger or OrderLedger(events=self.events)

    def _check_precondition(self, order: Order, allowed_from):
        if allowed_from is None:
            validate_transition(order=order, target_status=Order.STATUS_CANCELLED)
            return
        if order.fulfillment_status not in allowed_from:
            raise InvalidTransition(
                current=order.fulfillment_status,
                target=Order.STATUS_CANCELLED,
                allowed=allowed_targets(order.fulfillment_status) - {Order.STATUS_CANCELLED},
            )

    def _refund_step(self, order: Order, reason: str) -> tuple[StepOutcome, str | None]:
        if order.payment_status != Order.PAYMENT_STATUS_PAID or not order.remote_payment_id:
            return StepOutcome(name="refund", ok=True, skipped=True, detail="no captured payment"), None

        try:
            outcome = self.refunds.refund(
                order_id=order.pk,
                amount=None,
                reason=reason or "Order cancelled",
                notify_customer=False,
                restore_inventory=False,
            )
        except RefundError as exc:
            logger.warning("Cancellation refund rejected", extra={"order_id": str(order.pk), "error": str(exc)})
            return StepOutcome(name="refund", ok=False, detail=str(exc)), None
        except Exception as exc:
            logger.exception("Cancellation refund crashed", extra={"order_id": str(order.pk)})
            return StepOutcome(name="refund", ok=False, detail=str(exc)), None

        if not outcome.ok:
            return StepOutcome(name="refund", ok=False, detail=outcome.error), None
        return StepOutcome(name="refund", ok=True, detail=outcome.status), outcome.refund_id

    def _stock_step(self, name: str, func, order: Order) -> tuple[StepOutcome, int]:
        try:
            count = func(order=order)
        except Exception as exc:
            logger.exception("Cancellation step failed", extra={"order_id": str(order.pk), "step": name})
            return StepOutcome(name=name, ok=False, detail=str(exc)), 0
        return StepOutcome(name=name, ok=True, detail=f"{count} line(s)"), count

    def _claim(self, *, order_id, reason: str, allowed_from, tracking) -> Order | None:
        """
        Lock the row and move it to cancelled. Returns None if another
        request got there first. The returned payment fields were read
        under the lock; a capture after this point is refused by mark_paid.
        """
        with transaction.atomic():
            order = Order.objects.select_for_update().get(pk=order_id)
            if order.fulfillment_status == Order.STATUS_CANCELLED:
                if tracking:
                    self.ledger.update_tracking(order_id=order.pk, tracking=tracking)
                return None
            self._check_precondition(order, allowed_from)
            return self.ledger.transition(
                order_id=order.pk,
                target_status=Order.STATUS_CANCELLED,
                tracking=tracking,
                reason=reason,
            )

    def cancel(
        self,
        *,
        order_id,
        reason: str = "",
        allowed_from=None,
        tracking: dict | None = None,
    ) -> CancellationResult:
        """
        allowed_from narrows the states cancellation is accepted from
        (DELETE uses unfulfilled/processing/packed); None uses the lifecycle table.
        tracking fields sent alongside the cancel are stored with it.
        """
        order = self._claim(
            order_id=order_id, reason=reason, allowed_from=allowed_from, tracking=tracking
        )
        if order is None:
            logger.info("Cancellation ignored: already cancelled", extra={"order_id": str(order_id)})
            return CancellationResult(order_id=str(order_id), cancelled=True, already_cancelled=True)

        steps: list[StepOutcome] = [StepOutcome(name="transition", ok=True)]

        refund_step, refund_id = self._refund_step(order, reason)
        steps.append(refund_step)

        restore_step, restored = self._stock_step("restore_inventory", self.inventory.restore, order)
        steps.append(restore_step)

        release_step, released = self._stock_step("release_reservation", self.inventory.release, order)
        steps.append(release_step)

        refund_issued = refund_id is not None
        schedule_after_commit(
            self.events.order_cancelled,
            order.pk,
            refund_issued=refund_issued,
            reason=reason,
            name=f"order-cancelled-{order.pk}",
        )
        steps.append(StepOutcome(name="notify", ok=True, detail="scheduled"))

        result = CancellationResult(
            order_id=str(order.pk),
            cancelled=True,
            refund_issued=refund_issued,
            refund_id=refund_id,
            inventory_restored=bool(restored or released),
            steps=steps,
        )

        if result.warnings:
            logger.warning(
                "Order cancelled with warnings",
                extra={"order_id": str(order.pk), "warnings": result.warnings},
            )
        else:
            logger.info("Order cancelled", extra={"order_id": str(order.pk), "refund_issued": refund_issued})
        return result
