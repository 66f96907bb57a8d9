# orders/services/ledger.py

"""
ORDER LEDGER

The single writer of Order/OrderItem rows and of fulfillment_status.

- create_order(): Order + item snapshots (caller owns the transaction)
- transition(): row-locked, validated against order_lifecycle, stamps the
  matching timestamp, schedules customer emails after commit
- mark_processing(): conditional unfulfilled -> processing (COD checkout)
- record_shipment(): tracking fields + forward-only status move; safe to
  race with merchant edits because every write is keyed on the pre-state
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from orders.models import Order, OrderItem
from orders.services.order_events import OrderEvents
from orders.services.order_lifecycle import (
    TERMINAL_STATES,
    TIMESTAMP_FIELDS,
    earlier_states,
    validate_transition,
)
from shipping.services.background import schedule_after_commit

logger = logging.getLogger(__name__)

TRACKING_FIELDS = ("tracking_number", "courier_name", "tracking_url", "shipment_id")


class OrderLedger:
    def __init__(self, *, events=None, clock=timezone.now):
        self.events = events or OrderEvents()
        self._clock = clock

    # --------------------------------------------------
    # CREATE
    # --------------------------------------------------

    def create_order(
        self,
        *,
        store,
        customer: dict,
        shipping_address: dict,
        payment_method: str,
        lines,
        totals,
        notes: str = "",
    ) -> Order:
        order = Order.objects.create(
            store=store,
            customer_name=(customer.get("name") or "").strip(),
            customer_email=(customer.get("email") or "").strip(),
            customer_phone=(customer.get("phone") or "").strip(),
            shipping_address=dict(shipping_address or {}),
            subtotal_amount=totals.subtotal,
            shipping_amount=totals.shipping,
            tax_amount=totals.tax,
            discount_amount=totals.discount,
            total_amount=totals.total,
            currency=store.currency,
            payment_method=payment_method,
            notes=(notes or "").strip(),
        )

        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product=line.product,
                    variant=line.variant,
                    title=line.title,
                    image_url=line.image_url,
                    variant_attributes=line.variant_attributes,
                    variant_sku=line.variant_sku,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    total_price=line.total_price,
                )
                for line in lines
            ]
        )

        logger.info(
            "Order created",
            extra={
                "order_id": str(order.pk),
                "order_number": order.order_number,
                "payment_method": payment_method,
                "total": str(order.total_amount),
            },
        )
        return order

    # --------------------------------------------------
    # TRANSITIONS
    # --------------------------------------------------

    @transaction.atomic
    def transition(
        self,
        *,
        order_id,
        target_status: str,
        tracking: dict | None = None,
        reason: str = "",
    ) -> Order:
        order = Order.objects.select_for_update().get(pk=order_id)
        validate_transition(order=order, target_status=target_status)

        previous = order.fulfillment_status
        now = self._clock()

        order.fulfillment_status = target_status
        update_fields = ["fulfillment_status", "updated_at"]

        ts_field = TIMESTAMP_FIELDS.get(target_status)
        if ts_field:
            setattr(order, ts_field, now)
            update_fields.append(ts_field)

        for name, value in (tracking or {}).items():
            if name in TRACKING_FIELDS and value is not None:
                setattr(order, name, str(value).strip())
                update_fields.append(name)

        if target_status == Order.STATUS_CANCELLED and reason:
            order.cancellation_reason = reason.strip()
            update_fields.append("cancellation_reason")

        order.save(update_fields=update_fields)

        logger.info(
            "Order status changed",
            extra={"order_id": str(order.pk), "from": previous, "to": target_status},
        )

        if target_status == Order.STATUS_SHIPPED and order.tracking_number:
            schedule_after_commit(
                self.events.order_shipped, order.pk, name=f"order-shipped-{order.pk}"
            )
        elif target_status == Order.STATUS_DELIVERED:
            schedule_after_commit(
                self.events.order_delivered, order.pk, name=f"order-delivered-{order.pk}"
            )

        return order

    @transaction.atomic
    def update_tracking(self, *, order_id, tracking: dict) -> Order:
        order = Order.objects.select_for_update().get(pk=order_id)
        update_fields = ["updated_at"]
        for name, value in (tracking or {}).items():
            if name in TRACKING_FIELDS and value is not None:
                setattr(order, name, str(value).strip())
                update_fields.append(name)
        order.save(update_fields=update_fields)
        return order

    def mark_processing(self, *, order) -> bool:
        moved = Order.objects.filter(
            pk=order.pk, fulfillment_status=Order.STATUS_UNFULFILLED
        ).update(fulfillment_status=Order.STATUS_PROCESSING, updated_at=self._clock())
        if moved:
            order.fulfillment_status = Order.STATUS_PROCESSING
        return bool(moved)

    def record_shipment(self, *, order_id, booking) -> bool:
        """
        Persist carrier booking; never moves status backwards and never
        touches a terminal order. Returns False if the order was terminal.
        """
        now = self._clock()
        stored = (
            Order.objects.filter(pk=order_id)
            .exclude(fulfillment_status__in=TERMINAL_STATES)
            .update(
                shipment_id=booking.shipment_id or "",
                tracking_number=booking.awb_code or "",
                courier_name=booking.courier_name or "",
                tracking_url=booking.tracking_url or "",
                updated_at=now,
            )
        )
        if not stored:
            logger.warning(
                "Shipment booked for terminal order; needs reconciliation",
                extra={"order_id": str(order_id), "shipment_id": booking.shipment_id},
            )
            return False

        Order.objects.filter(
            pk=order_id,
            fulfillment_status__in=earlier_states(Order.STATUS_PROCESSING),
        ).update(fulfillment_status=Order.STATUS_PROCESSING, updated_at=now)
        return True
