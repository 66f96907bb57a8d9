# shipping/services/auto_creator.py

"""
SHIPMENT AUTO-CREATOR (BEST-EFFORT SIDE CHANNEL)

Runs detached from checkout / payment confirmation.

Guarantees:
- bounded attempts (SHIPPING["AUTO_CREATE_MAX_ATTEMPTS"], default 3) with
  exponential backoff between attempts (base * 2**i)
- every attempt recorded as a ShipmentAttempt row
- success: tracking persisted via OrderLedger.record_shipment (forward-only)
- exhaustion: high-priority dashboard alert + merchant email; order untouched
- never raises into its caller
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from django.conf import settings

from orders.models import Order
from orders.services.ledger import OrderLedger
from orders.services.order_events import OrderEvents
from orders.services.order_lifecycle import TERMINAL_STATES
from shipping.carriers.base import ShipmentBooking, ShipmentRequest, load_carrier
from shipping.exceptions import ShipmentCreationError
from shipping.models import ShipmentAttempt
from shipping.services.background import schedule_after_commit

logger = logging.getLogger(__name__)

NOT_SHIPPABLE = TERMINAL_STATES | {
    Order.STATUS_SHIPPED,
    Order.STATUS_OUT_FOR_DELIVERY,
    Order.STATUS_DELIVERED,
}


def _shipping_cfg() -> dict:
    cfg = getattr(settings, "SHIPPING", {}) or {}
    return cfg if isinstance(cfg, dict) else {}


@dataclass(frozen=True)
class ShipmentOutcome:
    order_id: str
    ok: bool
    attempts: int = 0
    booking: ShipmentBooking | None = None
    error: str = ""
    skipped: bool = False
    escalated: bool = False


def build_shipment_request(order: Order) -> ShipmentRequest:
    cfg = _shipping_cfg()
    package = cfg.get("DEFAULT_PACKAGE") or {}
    items = [
        {
            "name": it.title,
            "sku": it.variant_sku or it.product.sku or str(it.product_id),
            "units": it.quantity,
            "selling_price": float(it.unit_price),
        }
        for it in order.items.select_related("product")
    ]
    return ShipmentRequest(
        order_id=str(order.pk),
        order_number=order.order_number,
        order_date=order.created_at.date().isoformat(),
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        customer_phone=order.customer_phone,
        address=dict(order.shipping_address or {}),
        items=items,
        payment_mode="cod" if order.is_cod else "prepaid",
        order_value=order.total_amount,
        pickup_location=cfg.get("PICKUP_LOCATION") or "Primary",
        length_cm=package.get("length_cm", 20),
        breadth_cm=package.get("breadth_cm", 15),
        height_cm=package.get("height_cm", 10),
        weight_kg=package.get("weight_kg", 0.5),
    )


class ShipmentAutoCreator:
    def __init__(
        self,
        *,
        carrier=None,
        ledger=None,
        events=None,
        sleep=time.sleep,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
    ):
        cfg = _shipping_cfg()
        self._carrier = carrier
        self.ledger = ledger or OrderLedger()
        self.events = events or OrderEvents()
        self._sleep = sleep
        self.max_attempts = max(1, int(max_attempts or cfg.get("AUTO_CREATE_MAX_ATTEMPTS", 3)))
        self.backoff_seconds = float(
            backoff_seconds if backoff_seconds is not None else cfg.get("AUTO_CREATE_BACKOFF_SECONDS", 1.0)
        )

    def _resolve_carrier(self):
        return self._carrier if self._carrier is not None else load_carrier()

    def _record_attempt(self, *, order_id, attempt: int, succeeded: bool, error: str = "", shipment_id: str = ""):
        ShipmentAttempt.objects.create(
            order_id=order_id,
            attempt_number=attempt,
            succeeded=succeeded,
            error=error[:2000],
            shipment_id=shipment_id,
        )

    def run(self, order_id, *, escalate: bool = True) -> ShipmentOutcome:
        order = Order.objects.select_related("store").filter(pk=order_id).first()
        if order is None:
            logger.warning("Shipment skipped: order missing", extra={"order_id": str(order_id)})
            return ShipmentOutcome(order_id=str(order_id), ok=False, skipped=True, error="Order not found")

        if order.fulfillment_status in NOT_SHIPPABLE:
            logger.info(
                "Shipment skipped: order not shippable",
                extra={"order_id": str(order.pk), "status": order.fulfillment_status},
            )
            return ShipmentOutcome(
                order_id=str(order.pk),
                ok=False,
                skipped=True,
                error=f"Order is {order.fulfillment_status}",
            )

        if order.shipment_id:
            return ShipmentOutcome(order_id=str(order.pk), ok=False, skipped=True, error="Shipment already exists")

        try:
            carrier = self._resolve_carrier()
        except ShipmentCreationError as exc:
            carrier = None
            config_error = str(exc)
        else:
            config_error = "No carrier configured"

        if carrier is None:
            logger.info("Shipment skipped: %s", config_error, extra={"order_id": str(order.pk)})
            return ShipmentOutcome(order_id=str(order.pk), ok=False, skipped=True, error=config_error)

        request = build_shipment_request(order)
        last_error = ""

        for attempt in range(1, self.max_attempts + 1):
            try:
                booking = carrier.create_shipment(request)
            except Exception as exc:
                last_error = str(exc) or exc.__class__.__name__
                self._record_attempt(order_id=order.pk, attempt=attempt, succeeded=False, error=last_error)
                logger.warning(
                    "Shipment attempt failed",
                    extra={"order_id": str(order.pk), "attempt": attempt, "error": last_error},
                )
                if attempt < self.max_attempts:
                    self._sleep(self.backoff_seconds * (2 ** (attempt - 1)))
                continue

            self._record_attempt(
                order_id=order.pk, attempt=attempt, succeeded=True, shipment_id=booking.shipment_id
            )
            self.ledger.record_shipment(order_id=order.pk, booking=booking)

            try:
                carrier.schedule_pickup(booking.shipment_id)
            except ShipmentCreationError:
                logger.exception("Pickup scheduling failed", extra={"order_id": str(order.pk)})

            logger.info(
                "Shipment created",
                extra={"order_id": str(order.pk), "attempt": attempt, "awb": booking.awb_code},
            )
            return ShipmentOutcome(order_id=str(order.pk), ok=True, attempts=attempt, booking=booking)

        logger.error(
            "Shipment creation exhausted retries",
            extra={"order_id": str(order.pk), "attempts": self.max_attempts, "error": last_error},
        )
        if escalate:
            self.events.shipment_failed(order.pk, error=last_error, attempts=self.max_attempts)

        return ShipmentOutcome(
            order_id=str(order.pk),
            ok=False,
            attempts=self.max_attempts,
            error=last_error,
            escalated=escalate,
        )


def auto_shipment_enabled(store) -> bool:
    return bool(store.auto_create_shipment and (_shipping_cfg().get("CARRIER_BACKEND") or "").strip())


def run_auto_shipment(order_id) -> ShipmentOutcome:
    return ShipmentAutoCreator().run(order_id)


def schedule_auto_shipment(order) -> bool:
    """Queue a detached booking after the current transaction commits."""
    if not auto_shipment_enabled(order.store):
        return False
    schedule_after_commit(run_auto_shipment, order.pk, name=f"auto-shipment-{order.pk}")
    return True
