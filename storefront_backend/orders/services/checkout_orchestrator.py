# orders/services/checkout_orchestrator.py

"""
CHECKOUT ORCHESTRATOR (APPLICATION SERVICE)

Purpose:
- Turn a requested cart into an Order with held stock, in ONE transaction:
    store gate -> COD gate -> validate cart -> totals -> order + items
    -> reserve stock
  Any failure there rolls back every row and every stock hold taken so far.
- Online: the remote gateway order is created AFTER that commit, so no
  product row stays locked across the HTTP call. If the gateway fails the
  order is kept with payment failed and its holds released.

Hard rules:
- Money is computed server-side; client prices are never read.
- Online: stock stays HELD until payment verification commits it.
- COD: the reservation IS the sale; it is committed at checkout and the
  order moves to processing.
- Side effects (emails, dashboard alerts, shipment booking) run only after
  commit, detached from the request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction

from orders.models import Order
from orders.services.cart_validator import CartValidator
from orders.services.exceptions import PaymentMethodUnavailable, StoreUnavailable
from orders.services.inventory import InventoryReservationManager
from orders.services.ledger import OrderLedger
from orders.services.order_events import OrderEvents
from orders.services.payment_verification import PaymentVerificationService
from orders.services.pricing import compute_totals
from payments.exceptions import PaymentGatewayError
from payments.services.resolver import GatewayResolver
from shipping.services.auto_creator import schedule_auto_shipment
from shipping.services.background import schedule_after_commit
from store.models import Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    order_id: str
    order_number: str
    total: Decimal
    currency: str
    payment_method: str
    payment_status: str
    fulfillment_status: str
    remote_order_id: str = ""
    key_id: str = ""


class CheckoutOrchestrator:
    def __init__(
        self,
        *,
        validator=None,
        inventory=None,
        ledger=None,
        gateways=None,
        events=None,
        payments=None,
    ):
        self.validator = validator or CartValidator()
        self.inventory = inventory or InventoryReservationManager()
        self.events = events or OrderEvents()
        self.ledger = ledger or OrderLedger(events=self.events)
        self.gateways = gateways or GatewayResolver()
        self.payments = payments or PaymentVerificationService(
            gateways=self.gateways, inventory=self.inventory, events=self.events
        )

    def _load_store(self, store_id) -> Store:
        store = Store.objects.filter(pk=store_id).first()
        if store is None or not store.is_active:
            raise StoreUnavailable("Store not found or inactive")
        return store

    def checkout(
        self,
        *,
        store_id,
        items,
        customer: dict,
        shipping_address: dict,
        payment_method: str,
        notes: str = "",
    ) -> CheckoutResult:
        order, gateway = self._place_order(
            store_id=store_id,
            items=items,
            customer=customer,
            shipping_address=shipping_address,
            payment_method=payment_method,
            notes=notes,
        )
        if gateway is None:
            return self._result(order)
        return self._open_remote_order(order, gateway)

    @transaction.atomic
    def _place_order(self, *, store_id, items, customer, shipping_address, payment_method, notes):
        store = self._load_store(store_id)

        if payment_method == Order.PAYMENT_METHOD_COD and not store.cod_enabled:
            raise PaymentMethodUnavailable("Cash on delivery is not available for this store")

        # Gateway resolution fails before any row is written.
        gateway = None
        if payment_method == Order.PAYMENT_METHOD_ONLINE:
            gateway = self.gateways.for_store(store)

        lines = self.validator.validate(store_id=store.pk, items=items)
        totals = compute_totals(store=store, lines=lines, payment_method=payment_method)

        order = self.ledger.create_order(
            store=store,
            customer=customer,
            shipping_address=shipping_address,
            payment_method=payment_method,
            lines=lines,
            totals=totals,
            notes=notes,
        )

        self.inventory.reserve(order=order, lines=lines)

        if payment_method == Order.PAYMENT_METHOD_COD:
            self.inventory.commit(order=order)
            self.ledger.mark_processing(order=order)

            schedule_after_commit(
                self.events.order_placed, order.pk, name=f"order-placed-{order.pk}"
            )
            schedule_auto_shipment(order)

            logger.info(
                "COD checkout completed",
                extra={"order_id": str(order.pk), "total": str(order.total_amount)},
            )

        return order, gateway

    def _open_remote_order(self, order: Order, gateway) -> CheckoutResult:
        """
        Runs after the order and its holds are committed, so product rows are
        not locked for the length of the gateway call. A gateway error fails
        the payment and hands the holds back before re-raising.
        """
        try:
            remote_order_id = gateway.create_remote_order(
                amount=order.total_amount,
                currency=order.currency,
                receipt=order.order_number,
                metadata={"order_id": str(order.pk), "store_id": str(order.store_id)},
            )
        except PaymentGatewayError as exc:
            logger.warning(
                "Remote order creation failed; releasing holds",
                extra={"order_id": str(order.pk), "error": str(exc)},
            )
            self.payments.mark_failed(order=order, reason="Payment gateway unavailable at checkout")
            raise

        order.remote_order_id = remote_order_id
        order.save(update_fields=["remote_order_id", "updated_at"])

        logger.info(
            "Online checkout awaiting payment",
            extra={"order_id": str(order.pk), "remote_order_id": remote_order_id},
        )
        return self._result(order, key_id=gateway.key_id)

    def _result(self, order: Order, *, key_id: str = "") -> CheckoutResult:
        return CheckoutResult(
            order_id=str(order.pk),
            order_number=order.order_number,
            total=order.total_amount,
            currency=order.currency,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            fulfillment_status=order.fulfillment_status,
            remote_order_id=order.remote_order_id,
            key_id=key_id,
        )
