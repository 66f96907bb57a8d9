# orders/models/order_item.py

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from catalog.models import Product, ProductVariant


class OrderItem(models.Model):
    """
    Line snapshot taken at checkout.

    title / image / unit_price are copies: later catalog edits never
    change what the customer bought.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="order_items",
    )

    title = models.CharField(max_length=255)
    image_url = models.URLField(max_length=500, blank=True, default="")
    variant_attributes = models.JSONField(default=dict, blank=True)
    variant_sku = models.CharField(max_length=64, blank=True, default="")

    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    class Meta:
        ordering = ["id"]

    @property
    def variant_label(self) -> str:
        return ", ".join(f"{k}: {v}" for k, v in (self.variant_attributes or {}).items())

    def __str__(self):
        return f"{self.title} x {self.quantity}"
