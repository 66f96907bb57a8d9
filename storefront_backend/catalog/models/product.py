# catalog/models/product.py

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from store.models import Store


class Product(models.Model):
    """
    Sellable catalog product.

    Stock rules:
    - quantity is on-hand stock, only meaningful when track_quantity is set
    - quantity is decremented ONLY through conditional updates
      (orders.services.inventory), never read-then-write
    - has_variants => stock and price live on ProductVariant rows
    """

    STATUS_DRAFT = "draft"
    STATUS_ACTIVE = "active"
    STATUS_PUBLISHED = "published"
    STATUS_ARCHIVED = "archived"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_ACTIVE, "Active"),
        (STATUS_PUBLISHED, "Published"),
        (STATUS_ARCHIVED, "Archived"),
    ]

    SELLABLE_STATUSES = {STATUS_ACTIVE, STATUS_PUBLISHED}

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    store = models.ForeignKey(
        Store,
        on_delete=models.CASCADE,
        related_name="products",
    )

    title = models.CharField(max_length=255)
    sku = models.CharField(max_length=64, blank=True, default="", db_index=True)
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    image_url = models.URLField(max_length=500, blank=True, default="")

    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE
    )

    track_quantity = models.BooleanField(default=True)
    quantity = models.PositiveIntegerField(default=0)
    has_variants = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["title"]
        indexes = [
            models.Index(fields=["store", "status"], name="catalog_prod_store_status_idx"),
        ]

    @property
    def is_sellable(self) -> bool:
        return self.status in self.SELLABLE_STATUSES

    def __str__(self):
        return f"{self.title} ({self.sku})" if self.sku else self.title
