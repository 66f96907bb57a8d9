# orders/services/refund_service.py

"""
REFUND SERVICE

Three phases so a slow gateway never holds the order lock:

1) LOCK: select_for_update the order, check state, check the bound
       amount <= total - sum(pending + processed refunds)
   and insert a PENDING Refund row (it counts against the bound at once,
   so two concurrent refunds cannot both fit).
2) GATEWAY: issue the remote refund. Errors mark the row FAILED, which
   releases its share of the bound, and come back as RefundOutcome(ok=False).
3) FINALIZE: store the remote id/status. If this refund exhausted the
   balance: payment_status paid -> refunded (conditional) and stock restored
   once.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from orders.models import Order, Refund
from orders.services.exceptions import RefundLimitExceeded, RefundNotAllowed
from orders.services.inventory import InventoryReservationManager
from orders.services.order_events import OrderEvents
from orders.services.pricing import ZERO, _money
from orders.services.results import RefundOutcome
from payments.exceptions import PaymentGatewayError
from payments.services.resolver import GatewayResolver
from shipping.services.background import schedule_after_commit

logger = logging.getLogger(__name__)


def refunded_so_far(order: Order) -> Decimal:
    total = (
        Refund.objects.filter(order=order, status__in=Refund.COUNTED_STATUSES)
        .aggregate(total=Sum("amount"))
        .get("total")
    )
    return _money(total or ZERO)


def refundable_amount(order: Order) -> Decimal:
    return max(_money(order.total_amount) - refunded_so_far(order), ZERO)


class RefundService:
    def __init__(self, *, gateways=None, inventory=None, events=None, clock=timezone.now):
        self.gateways = gateways or GatewayResolver()
        self.inventory = inventory or InventoryReservationManager()
        self.events = events or OrderEvents()
        self._clock = clock

    def _reserve_refund(self, *, order_id, amount, reason: str) -> tuple[Order, Refund, bool]:
        with transaction.atomic():
            order = Order.objects.select_for_update().get(pk=order_id)

            if order.payment_status != Order.PAYMENT_STATUS_PAID:
                raise RefundNotAllowed(
                    f"Only paid orders can be refunded (payment is {order.payment_status})"
                )
            if not order.remote_payment_id:
                raise RefundNotAllowed("Order has no captured gateway payment to refund")

            refundable = refundable_amount(order)
            requested = refundable if amount is None else _money(amount)

            if requested <= ZERO:
                raise RefundLimitExceeded(
                    "Refund amount must be greater than zero", refundable=refundable
                )
            if requested > refundable:
                raise RefundLimitExceeded(
                    f"Refund amount {requested} exceeds refundable balance {refundable}",
                    refundable=refundable,
                )

            refund = Refund.objects.create(
                order=order,
                amount=requested,
                reason=(reason or "").strip(),
                status=Refund.STATUS_PENDING,
                refund_type=(
                    Refund.TYPE_FULL
                    if requested == _money(order.total_amount)
                    else Refund.TYPE_PARTIAL
                ),
            )
            return order, refund, requested == refundable

    def refund(
        self,
        *,
        order_id,
        amount=None,
        reason: str = "",
        notify_customer: bool = True,
        restore_inventory: bool = True,
    ) -> RefundOutcome:
        """
        amount=None refunds the remaining balance.
        Raises RefundNotAllowed / RefundLimitExceeded before any gateway call.
        """
        order, refund, exhausts_balance = self._reserve_refund(
            order_id=order_id, amount=amount, reason=reason
        )

        gateway_amount = None if refund.refund_type == Refund.TYPE_FULL else refund.amount

        try:
            gateway = self.gateways.for_store(order.store)
            remote = gateway.refund(
                remote_payment_id=order.remote_payment_id,
                amount=gateway_amount,
                metadata={"order_id": str(order.pk), "refund_id": str(refund.pk)},
            )
        except PaymentGatewayError as exc:
            Refund.objects.filter(pk=refund.pk, status=Refund.STATUS_PENDING).update(
                status=Refund.STATUS_FAILED, failure_reason=str(exc)[:2000]
            )
            logger.warning(
                "Gateway refund failed",
                extra={"order_id": str(order.pk), "refund_id": str(refund.pk), "error": str(exc)},
            )
            return RefundOutcome(
                ok=False,
                refund_id=str(refund.pk),
                status=Refund.STATUS_FAILED,
                amount=refund.amount,
                error=str(exc),
            )

        return self._finalize(
            order=order,
            refund=refund,
            remote=remote,
            exhausts_balance=exhausts_balance,
            notify_customer=notify_customer,
            restore_inventory=restore_inventory,
        )

    def _finalize(self, *, order, refund, remote, exhausts_balance, notify_customer, restore_inventory) -> RefundOutcome:
        now = self._clock()

        if remote.status == Refund.STATUS_FAILED:
            Refund.objects.filter(pk=refund.pk).update(
                status=Refund.STATUS_FAILED,
                remote_refund_id=remote.refund_id,
                failure_reason="Gateway reported refund failure",
            )
            return RefundOutcome(
                ok=False,
                refund_id=str(refund.pk),
                remote_refund_id=remote.refund_id,
                status=Refund.STATUS_FAILED,
                amount=refund.amount,
                error="Gateway reported refund failure",
            )

        with transaction.atomic():
            processed = remote.status == Refund.STATUS_PROCESSED
            Refund.objects.filter(pk=refund.pk).update(
                remote_refund_id=remote.refund_id,
                status=Refund.STATUS_PROCESSED if processed else Refund.STATUS_PENDING,
                processed_at=now if processed else None,
            )

            fully_refunded = False
            if exhausts_balance:
                fully_refunded = bool(
                    Order.objects.filter(
                        pk=order.pk, payment_status=Order.PAYMENT_STATUS_PAID
                    ).update(
                        payment_status=Order.PAYMENT_STATUS_REFUNDED,
                        refunded_at=now,
                        updated_at=now,
                    )
                )
                if fully_refunded and restore_inventory:
                    self.inventory.restore_all(order=order)

            schedule_after_commit(
                self.events.refund_processed,
                order.pk,
                amount=refund.amount,
                reason=refund.reason,
                notify_customer=notify_customer,
                name=f"refund-processed-{refund.pk}",
            )

        logger.info(
            "Refund recorded",
            extra={
                "order_id": str(order.pk),
                "refund_id": str(refund.pk),
                "amount": str(refund.amount),
                "fully_refunded": fully_refunded,
            },
        )
        return RefundOutcome(
            ok=True,
            refund_id=str(refund.pk),
            remote_refund_id=remote.refund_id,
            status=Refund.STATUS_PROCESSED if processed else Refund.STATUS_PENDING,
            amount=refund.amount,
            fully_refunded=fully_refunded,
        )
