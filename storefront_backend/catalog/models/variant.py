# catalog/models/variant.py

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from .product import Product


class ProductVariant(models.Model):
    """
    A purchasable option of a Product (size/colour/...).

    price is an optional override of the parent product price.
    """

    STATUS_ACTIVE = "active"
    STATUS_DISABLED = "disabled"

    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_DISABLED, "Disabled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="variants",
    )

    sku = models.CharField(max_length=64, blank=True, default="")
    attributes = models.JSONField(default=dict, blank=True)
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    image_url = models.URLField(max_length=500, blank=True, default="")

    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE
    )

    track_quantity = models.BooleanField(default=True)
    quantity = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["product", "sku"]

    def effective_price(self) -> Decimal:
        return self.price if self.price is not None else self.product.price

    def __str__(self):
        label = ", ".join(f"{k}: {v}" for k, v in (self.attributes or {}).items())
        return f"{self.product.title} [{label or self.sku}]"
