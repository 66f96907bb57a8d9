# orders/models/order.py

import secrets
import string
import time
import uuid
from decimal import Decimal

from django.db import models
from django.db.models import Q

from store.models import Store

_BASE36 = string.digits + string.ascii_uppercase


def generate_order_number() -> str:
    """ORD-<epoch ms>-<5 random base36>, unique by construction."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


class Order(models.Model):
    """
    Storefront order.

    Writers:
    - OrderLedger: fulfillment_status + its timestamps
    - PaymentVerificationService: payment fields
    - CancellationOrchestrator / RefundService: cancellation + refund fields

    Money fields are computed once at checkout and are immutable afterwards.
    Orders are never deleted; cancellation is a status.
    """

    PAYMENT_METHOD_ONLINE = "online"
    PAYMENT_METHOD_COD = "cash_on_delivery"

    PAYMENT_METHOD_CHOICES = [
        (PAYMENT_METHOD_ONLINE, "Online"),
        (PAYMENT_METHOD_COD, "Cash on delivery"),
    ]

    PAYMENT_STATUS_PENDING = "pending"
    PAYMENT_STATUS_PAID = "paid"
    PAYMENT_STATUS_FAILED = "failed"
    PAYMENT_STATUS_REFUNDED = "refunded"

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_STATUS_PENDING, "Pending"),
        (PAYMENT_STATUS_PAID, "Paid"),
        (PAYMENT_STATUS_FAILED, "Failed"),
        (PAYMENT_STATUS_REFUNDED, "Refunded"),
    ]

    STATUS_UNFULFILLED = "unfulfilled"
    STATUS_PROCESSING = "processing"
    STATUS_PACKED = "packed"
    STATUS_SHIPPED = "shipped"
    STATUS_OUT_FOR_DELIVERY = "out_for_delivery"
    STATUS_DELIVERED = "delivered"
    STATUS_RETURNED = "returned"
    STATUS_CANCELLED = "cancelled"

    FULFILLMENT_STATUS_CHOICES = [
        (STATUS_UNFULFILLED, "Unfulfilled"),
        (STATUS_PROCESSING, "Processing"),
        (STATUS_PACKED, "Packed"),
        (STATUS_SHIPPED, "Shipped"),
        (STATUS_OUT_FOR_DELIVERY, "Out for delivery"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_RETURNED, "Returned"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    _IMMUTABLE_MONEY_FIELDS = (
        "subtotal_amount",
        "shipping_amount",
        "tax_amount",
        "discount_amount",
        "total_amount",
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_number = models.CharField(
        max_length=64,
        unique=True,
        blank=True,
        help_text="System-generated public order number",
    )

    store = models.ForeignKey(
        Store,
        on_delete=models.PROTECT,
        related_name="orders",
    )

    # Customer snapshot (copied at checkout)
    customer_name = models.CharField(max_length=120, blank=True, default="")
    customer_email = models.EmailField(blank=True, default="")
    customer_phone = models.CharField(max_length=40, blank=True, default="")
    shipping_address = models.JSONField(default=dict, blank=True)

    # Money fields (server authoritative)
    subtotal_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    shipping_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="INR")

    payment_method = models.CharField(max_length=32, choices=PAYMENT_METHOD_CHOICES)
    payment_status = models.CharField(
        max_length=16, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_STATUS_PENDING
    )
    fulfillment_status = models.CharField(
        max_length=32, choices=FULFILLMENT_STATUS_CHOICES, default=STATUS_UNFULFILLED
    )

    # Remote payment references
    remote_order_id = models.CharField(max_length=100, blank=True, default="", db_index=True)
    remote_payment_id = models.CharField(max_length=100, blank=True, default="")

    # Shipment
    shipment_id = models.CharField(max_length=100, blank=True, default="")
    tracking_number = models.CharField(max_length=100, blank=True, default="")
    courier_name = models.CharField(max_length=120, blank=True, default="")
    tracking_url = models.URLField(max_length=500, blank=True, default="")

    notes = models.TextField(blank=True, default="")
    cancellation_reason = models.TextField(blank=True, default="")

    # Transition timestamps
    paid_at = models.DateTimeField(null=True, blank=True)
    packed_at = models.DateTimeField(null=True, blank=True)
    shipped_at = models.DateTimeField(null=True, blank=True)
    out_for_delivery_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    returned_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["store", "created_at"], name="order_store_created_idx"),
            models.Index(fields=["store", "fulfillment_status"], name="order_store_fulfil_idx"),
            models.Index(fields=["payment_status"], name="order_payment_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(subtotal_amount__gte=0)
                & Q(shipping_amount__gte=0)
                & Q(tax_amount__gte=0)
                & Q(discount_amount__gte=0)
                & Q(total_amount__gte=0),
                name="order_amounts_non_negative",
            ),
        ]

    @property
    def is_cod(self) -> bool:
        return self.payment_method == self.PAYMENT_METHOD_COD

    def _validate_immutable(self, previous: "Order"):
        for field in self._IMMUTABLE_MONEY_FIELDS:
            if getattr(self, field) != getattr(previous, field):
                raise ValueError(
                    f"Order {previous.order_number}: field '{field}' cannot be changed after checkout."
                )

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            update_fields = kwargs.get("update_fields")
            if update_fields is None or set(update_fields) & set(self._IMMUTABLE_MONEY_FIELDS):
                previous = Order.objects.filter(pk=self.pk).first()
                if previous is not None:
                    self._validate_immutable(previous)

        if not self.order_number:
            self.order_number = generate_order_number()

        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.order_number} | {self.total_amount} | {self.fulfillment_status}"
