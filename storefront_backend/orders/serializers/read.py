# orders/serializers/read.py

from rest_framework import serializers

from orders.models import Order, OrderItem, Refund


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product",
            "variant",
            "title",
            "image_url",
            "variant_attributes",
            "variant_sku",
            "quantity",
            "unit_price",
            "total_price",
        ]
        read_only_fields = fields


class RefundSerializer(serializers.ModelSerializer):
    class Meta:
        model = Refund
        fields = [
            "id",
            "order",
            "amount",
            "reason",
            "status",
            "refund_type",
            "remote_refund_id",
            "failure_reason",
            "created_at",
            "processed_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "store",
            "customer_name",
            "customer_email",
            "customer_phone",
            "shipping_address",
            "subtotal_amount",
            "shipping_amount",
            "tax_amount",
            "discount_amount",
            "total_amount",
            "currency",
            "payment_method",
            "payment_status",
            "fulfillment_status",
            "remote_order_id",
            "shipment_id",
            "tracking_number",
            "courier_name",
            "tracking_url",
            "notes",
            "cancellation_reason",
            "paid_at",
            "packed_at",
            "shipped_at",
            "out_for_delivery_at",
            "delivered_at",
            "returned_at",
            "cancelled_at",
            "refunded_at",
            "created_at",
            "updated_at",
            "items",
        ]
        read_only_fields = fields
