# notifications/models/notification.py

import uuid

from django.db import models

from store.models import Store


class Notification(models.Model):
    """
    Merchant dashboard alert.

    Rows are append-only apart from the read flag.
    """

    TYPE_NEW_ORDER = "new_order"
    TYPE_ORDER_PAID = "order_paid"
    TYPE_ORDER_CANCELLED = "order_cancelled"
    TYPE_REFUND_PROCESSED = "refund_processed"
    TYPE_PAYMENT_FAILED = "payment_failed"
    TYPE_SHIPMENT_FAILED = "shipment_failed"
    TYPE_PAYMENT_ORPHANED = "payment_orphaned"

    TYPE_CHOICES = [
        (TYPE_NEW_ORDER, "New order"),
        (TYPE_ORDER_PAID, "Order paid"),
        (TYPE_ORDER_CANCELLED, "Order cancelled"),
        (TYPE_REFUND_PROCESSED, "Refund processed"),
        (TYPE_PAYMENT_FAILED, "Payment failed"),
        (TYPE_SHIPMENT_FAILED, "Shipment failed"),
        (TYPE_PAYMENT_ORPHANED, "Payment needs manual refund"),
    ]

    PRIORITY_LOW = "low"
    PRIORITY_NORMAL = "normal"
    PRIORITY_HIGH = "high"
    PRIORITY_URGENT = "urgent"

    PRIORITY_CHOICES = [
        (PRIORITY_LOW, "Low"),
        (PRIORITY_NORMAL, "Normal"),
        (PRIORITY_HIGH, "High"),
        (PRIORITY_URGENT, "Urgent"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    store = models.ForeignKey(
        Store,
        on_delete=models.CASCADE,
        related_name="notifications",
    )

    type = models.CharField(max_length=40, choices=TYPE_CHOICES)
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True, default="")
    priority = models.CharField(
        max_length=10, choices=PRIORITY_CHOICES, default=PRIORITY_NORMAL
    )
    metadata = models.JSONField(default=dict, blank=True)

    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["store", "read"], name="notif_store_read_idx"),
        ]

    def __str__(self):
        return f"[{self.priority}] {self.title}"
