# orders/models/refund.py

import uuid

from django.db import models
from django.db.models import Q


class Refund(models.Model):
    """
    Refund ledger row.

    pending/processed rows count against the order's refundable balance;
    failed rows do not.
    """

    STATUS_PENDING = "pending"
    STATUS_PROCESSED = "processed"
    STATUS_FAILED = "failed"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_PROCESSED, "Processed"),
        (STATUS_FAILED, "Failed"),
    ]

    COUNTED_STATUSES = (STATUS_PENDING, STATUS_PROCESSED)

    TYPE_FULL = "full"
    TYPE_PARTIAL = "partial"

    TYPE_CHOICES = [
        (TYPE_FULL, "Full"),
        (TYPE_PARTIAL, "Partial"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="refunds",
    )

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    reason = models.TextField(blank=True, default="")
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    refund_type = models.CharField(max_length=16, choices=TYPE_CHOICES, default=TYPE_PARTIAL)

    remote_refund_id = models.CharField(max_length=100, blank=True, default="", db_index=True)
    failure_reason = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name="refund_amount_positive"),
        ]

    def __str__(self):
        return f"{self.order_id} | {self.amount} | {self.status}"
