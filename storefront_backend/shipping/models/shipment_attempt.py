# shipping/models/shipment_attempt.py

from django.db import models


class ShipmentAttempt(models.Model):
    """One carrier booking attempt (success or failure) for an order."""

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="shipment_attempts",
    )
    attempt_number = models.PositiveSmallIntegerField()
    succeeded = models.BooleanField(default=False)
    error = models.TextField(blank=True, default="")
    shipment_id = models.CharField(max_length=100, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["order", "created_at", "id"]

    def __str__(self):
        outcome = "ok" if self.succeeded else "failed"
        return f"{self.order_id} #{self.attempt_number} {outcome}"
