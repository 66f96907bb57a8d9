# notifications/services/sinks.py

"""
NOTIFICATION + EMAIL SINKS (FIRE-AND-FORGET)

Both sinks are side channels of the order pipeline:
- they NEVER raise into the caller
- every failure is logged with a stack trace
- each write runs in its own savepoint so a failed insert cannot poison
  an enclosing transaction
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction
from django.template.loader import render_to_string

from notifications.models import Notification

logger = logging.getLogger(__name__)


EMAIL_SUBJECTS = {
    "order_confirmation": "Order {order_number} confirmed",
    "order_cancelled": "Order {order_number} cancelled",
    "order_shipped": "Order {order_number} has shipped",
    "order_delivered": "Order {order_number} delivered",
    "refund_processed": "Refund for order {order_number}",
    "shipment_failed": "Action needed: shipment for order {order_number} failed",
    "payment_orphaned": "Action needed: refund payment for order {order_number}",
}


class NotificationSink:
    """Writes merchant dashboard alerts."""

    def notify(self, event: str, payload: dict) -> Notification | None:
        store_id = payload.get("store_id")
        if not store_id:
            logger.warning("Notification dropped: no store", extra={"event": event})
            return None

        try:
            with transaction.atomic():
                notification = Notification.objects.create(
                    store_id=store_id,
                    type=event,
                    title=str(payload.get("title") or event)[:255],
                    message=str(payload.get("message") or ""),
                    priority=payload.get("priority") or Notification.PRIORITY_NORMAL,
                    metadata=payload.get("metadata") or {},
                )
        except Exception:
            logger.exception(
                "Notification write failed",
                extra={"event": event, "store_id": str(store_id)},
            )
            return None

        logger.info(
            "Notification recorded",
            extra={"event": event, "notification_id": str(notification.id)},
        )
        return notification


class EmailSink:
    """Renders a plain-text template and hands it to Django's mail backend."""

    def send(self, template: str, data: dict) -> bool:
        recipients = data.get("to") or []
        if isinstance(recipients, str):
            recipients = [recipients]
        recipients = [r for r in recipients if r]

        if not recipients:
            logger.info("Email skipped: no recipient", extra={"template": template})
            return False

        try:
            subject = EMAIL_SUBJECTS.get(template, "{order_number}").format(
                order_number=data.get("order_number", "")
            )
            body = render_to_string(f"notifications/email/{template}.txt", data)
            send_mail(
                subject,
                body,
                settings.DEFAULT_FROM_EMAIL,
                recipients,
                fail_silently=False,
            )
        except Exception:
            logger.exception("Email send failed", extra={"template": template})
            return False

        logger.info("Email sent", extra={"template": template})
        return True
