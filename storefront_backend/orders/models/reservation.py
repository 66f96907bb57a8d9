# orders/models/reservation.py

from django.db import models

from catalog.models import Product, ProductVariant


class InventoryReservation(models.Model):
    """
    One hold per tracked order line.

    Stock is decremented when the hold is taken, so:
    - HELD -> COMMITTED: payment confirmed, stock stays decremented
    - HELD -> RELEASED: abandoned / failed / cancelled before commit, stock returned
    - COMMITTED -> RESTORED: cancelled or fully refunded after commit, stock returned

    Every move is a conditional update on the current status, so a line's
    stock is given back at most once.
    """

    STATUS_HELD = "held"
    STATUS_COMMITTED = "committed"
    STATUS_RELEASED = "released"
    STATUS_RESTORED = "restored"

    STATUS_CHOICES = [
        (STATUS_HELD, "Held"),
        (STATUS_COMMITTED, "Committed"),
        (STATUS_RELEASED, "Released"),
        (STATUS_RESTORED, "Restored"),
    ]

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="reservations",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reservations",
    )

    quantity = models.PositiveIntegerField()
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_HELD)

    expires_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=["status", "expires_at"], name="resv_status_expiry_idx"),
        ]

    def __str__(self):
        return f"{self.order_id} | {self.product_id} x {self.quantity} | {self.status}"
