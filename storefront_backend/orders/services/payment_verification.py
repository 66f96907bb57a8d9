# orders/services/payment_verification.py

"""
PAYMENT VERIFICATION SERVICE

The idempotent boundary where a payment confirmation becomes a durable
"paid" state exactly once.

Flow (client confirmation):
1) load order (read-only), resolve the store's gateway
2) signature check            -> SignatureMismatch, no mutation
3) remote order id check       -> OrderMismatch, no mutation
4) idempotency gate + mark paid as ONE conditional update keyed on
   payment_status=pending; a concurrent duplicate updates 0 rows and
   short-circuits, so stock is committed once and side effects fire once
   - a capture the order refuses (payment failed, order cancelled) keeps
     the gateway payment id and raises an urgent manual-refund alert
5) commit reservation in the same transaction; confirmation + shipment
   are scheduled after commit

The gateway webhook enters at step 4 (mark_paid) after its own signature check.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Case, F, Value, When
from django.utils import timezone

from orders.models import Order
from orders.services.exceptions import (
    OrderMismatch,
    OrphanedPayment,
    PaymentStateError,
    SignatureMismatch,
)
from orders.services.inventory import InventoryReservationManager
from orders.services.order_events import OrderEvents
from orders.services.results import VerificationResult
from payments.services.resolver import GatewayResolver
from shipping.services.auto_creator import schedule_auto_shipment
from shipping.services.background import schedule_after_commit

logger = logging.getLogger(__name__)


def _result(order: Order, *, already_paid: bool = False) -> VerificationResult:
    return VerificationResult(
        order_id=str(order.pk),
        order_number=order.order_number,
        payment_status=order.payment_status,
        fulfillment_status=order.fulfillment_status,
        already_paid=already_paid,
    )


class PaymentVerificationService:
    def __init__(self, *, gateways=None, inventory=None, events=None, clock=timezone.now):
        self.gateways = gateways or GatewayResolver()
        self.inventory = inventory or InventoryReservationManager()
        self.events = events or OrderEvents()
        self._clock = clock

    def verify(
        self,
        *,
        order_id,
        remote_order_id: str,
        remote_payment_id: str,
        signature: str,
    ) -> VerificationResult:
        order = Order.objects.select_related("store").get(pk=order_id)

        gateway = self.gateways.for_store(order.store)
        if not gateway.verify_signature(
            remote_order_id=remote_order_id,
            remote_payment_id=remote_payment_id,
            signature=signature,
        ):
            logger.warning("Payment signature mismatch", extra={"order_id": str(order.pk)})
            raise SignatureMismatch("Payment verification failed")

        if not order.remote_order_id or order.remote_order_id != remote_order_id:
            logger.warning("Payment order mismatch", extra={"order_id": str(order.pk)})
            raise OrderMismatch("Payment verification failed")

        return self.mark_paid(order=order, remote_payment_id=remote_payment_id)

    def mark_paid(self, *, order: Order, remote_payment_id: str) -> VerificationResult:
        now = self._clock()

        with transaction.atomic():
            updated = (
                Order.objects.filter(pk=order.pk, payment_status=Order.PAYMENT_STATUS_PENDING)
                .exclude(fulfillment_status=Order.STATUS_CANCELLED)
                .update(
                    payment_status=Order.PAYMENT_STATUS_PAID,
                    paid_at=now,
                    remote_payment_id=remote_payment_id,
                    fulfillment_status=Case(
                        When(
                            fulfillment_status=Order.STATUS_UNFULFILLED,
                            then=Value(Order.STATUS_PROCESSING),
                        ),
                        default=F("fulfillment_status"),
                    ),
                    updated_at=now,
                )
            )

            current = Order.objects.select_related("store").get(pk=order.pk)

            if updated:
                self.inventory.commit(order=current)

                schedule_after_commit(
                    self.events.order_placed, current.pk, name=f"order-paid-{current.pk}"
                )
                schedule_auto_shipment(current)

        if updated:
            logger.info("Order marked paid", extra={"order_id": str(current.pk)})
            return _result(current)

        if current.payment_status == Order.PAYMENT_STATUS_PAID:
            logger.info("Duplicate payment confirmation ignored", extra={"order_id": str(order.pk)})
            return _result(current, already_paid=True)

        message = (
            f"Order payment is {current.payment_status} and fulfillment is "
            f"{current.fulfillment_status}; cannot mark as paid"
        )
        if remote_payment_id and remote_payment_id != current.remote_payment_id:
            self._record_orphaned_capture(current, remote_payment_id)
            raise OrphanedPayment(message, remote_payment_id=remote_payment_id)
        raise PaymentStateError(message)

    def _record_orphaned_capture(self, order: Order, remote_payment_id: str) -> None:
        """
        The gateway holds money for an order that refused it (payment failed
        or order cancelled). Keep the payment id on the row and alert the
        merchant; the first id recorded wins, later ones only log.
        """
        with transaction.atomic():
            stored = Order.objects.filter(pk=order.pk, remote_payment_id="").update(
                remote_payment_id=remote_payment_id, updated_at=self._clock()
            )
            schedule_after_commit(
                self.events.payment_orphaned,
                order.pk,
                remote_payment_id=remote_payment_id,
                name=f"payment-orphaned-{order.pk}",
            )

        logger.error(
            "Payment captured for order that no longer accepts payment; manual refund required",
            extra={
                "order_id": str(order.pk),
                "remote_payment_id": remote_payment_id,
                "payment_status": order.payment_status,
                "fulfillment_status": order.fulfillment_status,
                "stored": bool(stored),
            },
        )

    def mark_failed(self, *, order: Order, reason: str = "") -> bool:
        """pending -> failed, then hand held stock back. Returns False if not pending."""
        with transaction.atomic():
            moved = Order.objects.filter(
                pk=order.pk, payment_status=Order.PAYMENT_STATUS_PENDING
            ).update(payment_status=Order.PAYMENT_STATUS_FAILED, updated_at=self._clock())
            if not moved:
                return False

            self.inventory.release(order=order)
            schedule_after_commit(
                self.events.payment_failed,
                order.pk,
                reason=reason,
                name=f"payment-failed-{order.pk}",
            )

        logger.info("Order payment failed", extra={"order_id": str(order.pk), "reason": reason})
        return True
