# orders/services/order_events.py

"""
ORDER EVENTS -> NOTIFICATION / EMAIL SINKS

Every method takes an order id and reloads the row, so it is safe to run
from a detached thread after commit. Sinks never raise.
"""

from __future__ import annotations

import logging

from django.conf import settings

from notifications.models import Notification
from notifications.services.sinks import EmailSink, NotificationSink
from orders.models import Order

logger = logging.getLogger(__name__)


def _refund_timeline_message() -> str:
    cfg = getattr(settings, "ORDERS", {}) or {}
    return cfg.get(
        "REFUND_TIMELINE_MESSAGE",
        "Your payment will be refunded within 5-7 business days.",
    )


def _load(order_id) -> Order | None:
    order = (
        Order.objects.select_related("store")
        .prefetch_related("items")
        .filter(pk=order_id)
        .first()
    )
    if order is None:
        logger.warning("Order event dropped: order missing", extra={"order_id": str(order_id)})
    return order


def _base_context(order: Order) -> dict:
    return {
        "order_id": str(order.pk),
        "order_number": order.order_number,
        "store_name": order.store.name,
        "customer_name": order.customer_name,
        "currency": order.currency,
    }


class OrderEvents:
    def __init__(self, *, notifier=None, email=None):
        self.notifier = notifier or NotificationSink()
        self.email = email or EmailSink()

    def _merchant_email(self, order: Order) -> str:
        if order.store.contact_email:
            return order.store.contact_email
        owner = getattr(order.store, "owner", None)
        return getattr(owner, "email", "") or ""

    # --------------------------------------------------
    # CHECKOUT / PAYMENT
    # --------------------------------------------------

    def order_placed(self, order_id) -> None:
        """Customer confirmation + merchant alert; COD at checkout, online after payment."""
        order = _load(order_id)
        if order is None:
            return

        items = [
            {
                "title": it.title,
                "variant": it.variant_label,
                "quantity": it.quantity,
                "total_price": it.total_price,
            }
            for it in order.items.all()
        ]
        self.email.send(
            "order_confirmation",
            {
                **_base_context(order),
                "to": order.customer_email,
                "items": items,
                "subtotal": order.subtotal_amount,
                "shipping": order.shipping_amount,
                "tax": order.tax_amount,
                "discount": order.discount_amount,
                "total": order.total_amount,
                "payment_method_label": order.get_payment_method_display(),
            },
        )

        paid = order.payment_status == Order.PAYMENT_STATUS_PAID
        self.notifier.notify(
            Notification.TYPE_ORDER_PAID if paid else Notification.TYPE_NEW_ORDER,
            {
                "store_id": order.store_id,
                "title": f"{'Payment received' if paid else 'New order'}: {order.order_number}",
                "message": f"{order.customer_name or 'A customer'} placed an order of {order.currency} {order.total_amount}.",
                "metadata": {"order_id": str(order.pk), "total": str(order.total_amount)},
            },
        )

    def payment_failed(self, order_id, *, reason: str = "") -> None:
        order = _load(order_id)
        if order is None:
            return
        self.notifier.notify(
            Notification.TYPE_PAYMENT_FAILED,
            {
                "store_id": order.store_id,
                "title": f"Payment failed: {order.order_number}",
                "message": reason or "The customer's payment did not complete.",
                "metadata": {"order_id": str(order.pk)},
            },
        )

    def payment_orphaned(self, order_id, *, remote_payment_id: str) -> None:
        """Money captured for an order that refused it; the merchant must refund by hand."""
        order = _load(order_id)
        if order is None:
            return
        self.notifier.notify(
            Notification.TYPE_PAYMENT_ORPHANED,
            {
                "store_id": order.store_id,
                "title": f"Refund needed: {order.order_number}",
                "message": (
                    f"Payment {remote_payment_id} of {order.currency} {order.total_amount} was captured "
                    f"after the order stopped accepting payment. Refund it from the gateway dashboard."
                ),
                "priority": Notification.PRIORITY_URGENT,
                "metadata": {
                    "order_id": str(order.pk),
                    "remote_payment_id": remote_payment_id,
                    "payment_status": order.payment_status,
                    "fulfillment_status": order.fulfillment_status,
                },
            },
        )
        self.email.send(
            "payment_orphaned",
            {
                **_base_context(order),
                "to": self._merchant_email(order),
                "remote_payment_id": remote_payment_id,
                "total": order.total_amount,
                "payment_status": order.payment_status,
                "fulfillment_status": order.fulfillment_status,
            },
        )

    # --------------------------------------------------
    # FULFILLMENT
    # --------------------------------------------------

    def order_shipped(self, order_id) -> None:
        order = _load(order_id)
        if order is None or not order.tracking_number:
            return
        self.email.send(
            "order_shipped",
            {
                **_base_context(order),
                "to": order.customer_email,
                "tracking_number": order.tracking_number,
                "courier_name": order.courier_name,
                "tracking_url": order.tracking_url,
            },
        )

    def order_delivered(self, order_id) -> None:
        order = _load(order_id)
        if order is None:
            return
        self.email.send("order_delivered", {**_base_context(order), "to": order.customer_email})

    # --------------------------------------------------
    # CANCELLATION / REFUNDS
    # --------------------------------------------------

    def order_cancelled(self, order_id, *, refund_issued: bool, reason: str = "") -> None:
        order = _load(order_id)
        if order is None:
            return
        self.email.send(
            "order_cancelled",
            {
                **_base_context(order),
                "to": order.customer_email,
                "reason": reason,
                "refund_issued": refund_issued,
                "refund_message": _refund_timeline_message(),
            },
        )
        self.notifier.notify(
            Notification.TYPE_ORDER_CANCELLED,
            {
                "store_id": order.store_id,
                "title": f"Order cancelled: {order.order_number}",
                "message": reason or "Order was cancelled.",
                "metadata": {"order_id": str(order.pk), "refund_issued": refund_issued},
            },
        )

    def refund_processed(self, order_id, *, amount, reason: str = "", notify_customer: bool = True) -> None:
        order = _load(order_id)
        if order is None:
            return
        if notify_customer:
            self.email.send(
                "refund_processed",
                {
                    **_base_context(order),
                    "to": order.customer_email,
                    "amount": amount,
                    "reason": reason,
                    "refund_message": _refund_timeline_message(),
                },
            )
        self.notifier.notify(
            Notification.TYPE_REFUND_PROCESSED,
            {
                "store_id": order.store_id,
                "title": f"Refund issued: {order.order_number}",
                "message": f"{order.currency} {amount} refunded.",
                "metadata": {"order_id": str(order.pk), "amount": str(amount)},
            },
        )

    def shipment_failed(self, order_id, *, error: str, attempts: int) -> None:
        order = _load(order_id)
        if order is None:
            return
        self.notifier.notify(
            Notification.TYPE_SHIPMENT_FAILED,
            {
                "store_id": order.store_id,
                "title": f"Shipment creation failed: {order.order_number}",
                "message": f"Automatic shipment failed after {attempts} attempt(s): {error}",
                "priority": Notification.PRIORITY_HIGH,
                "metadata": {
                    "order_id": str(order.pk),
                    "error": error,
                    "attempts": attempts,
                },
            },
        )
        self.email.send(
            "shipment_failed",
            {
                **_base_context(order),
                "to": self._merchant_email(order),
                "error": error,
                "attempts": attempts,
            },
        )
