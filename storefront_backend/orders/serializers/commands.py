# orders/serializers/commands.py

"""
COMMAND SERIALIZERS (WRITE SIDE)

Input shapes only. Prices are deliberately absent from cart lines: any
client-sent price is dropped here and never reaches the services.
"""

from decimal import Decimal

from rest_framework import serializers

from orders.models import Order


class CartItemSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1)


class CustomerSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    phone = serializers.CharField(max_length=40)


class ShippingAddressSerializer(serializers.Serializer):
    line1 = serializers.CharField(max_length=255)
    line2 = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    city = serializers.CharField(max_length=120)
    state = serializers.CharField(max_length=120)
    pincode = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=80, required=False, default="India")


class CheckoutCommandSerializer(serializers.Serializer):
    store_id = serializers.UUIDField()
    items = CartItemSerializer(many=True, allow_empty=False)
    customer = CustomerSerializer()
    shipping_address = ShippingAddressSerializer()
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class VerifyPaymentCommandSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    remote_order_id = serializers.CharField(max_length=100)
    remote_payment_id = serializers.CharField(max_length=100)
    signature = serializers.CharField(max_length=256)


class OrderStatusUpdateSerializer(serializers.Serializer):
    fulfillment_status = serializers.ChoiceField(
        choices=Order.FULFILLMENT_STATUS_CHOICES, required=False
    )
    tracking_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    courier_name = serializers.CharField(max_length=120, required=False, allow_blank=True)
    tracking_url = serializers.URLField(max_length=500, required=False, allow_blank=True)
    shipment_id = serializers.CharField(max_length=100, required=False, allow_blank=True)
    reason = serializers.CharField(required=False, allow_blank=True, default="")

    TRACKING_KEYS = ("tracking_number", "courier_name", "tracking_url", "shipment_id")

    def validate(self, attrs):
        if not attrs.get("fulfillment_status") and not any(k in attrs for k in self.TRACKING_KEYS):
            raise serializers.ValidationError("Provide fulfillment_status and/or tracking fields.")
        return attrs

    def tracking(self) -> dict:
        return {k: self.validated_data[k] for k in self.TRACKING_KEYS if k in self.validated_data}


class CancelCommandSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class RefundCommandSerializer(serializers.Serializer):
    amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0.01"),
        required=False,
        allow_null=True,
    )
    reason = serializers.CharField(required=False, allow_blank=True, default="")
    notify_customer = serializers.BooleanField(required=False, default=True)
