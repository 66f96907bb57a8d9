# store/models/store.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Store(models.Model):
    """
    A merchant storefront.

    Checkout settings live here (shipping rates, COD, tax) so order totals
    are computed from stable master-data, never from the client.

    Gateway override:
    - gateway_key_id is the publishable key handed to the storefront
    - gateway_key_secret_encrypted is AES-256-GCM ciphertext (base64),
      decrypted per call by payments.services.credentials
    - both empty => platform credentials are used
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stores",
    )
    contact_email = models.EmailField(blank=True, default="")

    is_active = models.BooleanField(default=True)
    currency = models.CharField(max_length=3, default="INR")

    # Checkout settings
    cod_enabled = models.BooleanField(default=True)
    cod_fee = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("20.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    flat_shipping_rate = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("49.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    free_shipping_threshold = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("999.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Percentage of subtotal, e.g. 18.00",
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    auto_create_shipment = models.BooleanField(default=True)

    # Per-store gateway credentials (optional)
    gateway_key_id = models.CharField(max_length=120, blank=True, default="")
    gateway_key_secret_encrypted = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    @property
    def has_gateway_override(self) -> bool:
        return bool(
            (self.gateway_key_id or "").strip()
            and (self.gateway_key_secret_encrypted or "").strip()
        )

    def __str__(self):
        return self.name
