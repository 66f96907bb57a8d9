# orders/admin.py

from django.contrib import admin

from orders.models import InventoryReservation, Order, OrderItem, Refund


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "product",
        "variant",
        "title",
        "variant_sku",
        "quantity",
        "unit_price",
        "total_price",
    )
    fields = readonly_fields


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "store",
        "customer_name",
        "total_amount",
        "payment_method",
        "payment_status",
        "fulfillment_status",
        "created_at",
    )
    list_filter = ("payment_method", "payment_status", "fulfillment_status", "store")
    search_fields = ("order_number", "customer_name", "customer_email", "customer_phone", "remote_order_id")
    readonly_fields = (
        "id",
        "order_number",
        "subtotal_amount",
        "shipping_amount",
        "tax_amount",
        "discount_amount",
        "total_amount",
        "remote_order_id",
        "remote_payment_id",
        "paid_at",
        "refunded_at",
        "created_at",
        "updated_at",
    )
    inlines = [OrderItemInline]

    def has_delete_permission(self, request, obj=None):
        # Orders are cancelled, never deleted.
        return False


@admin.register(Refund)
class RefundAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "amount", "refund_type", "status", "remote_refund_id", "created_at")
    list_filter = ("status", "refund_type")
    search_fields = ("order__order_number", "remote_refund_id")
    readonly_fields = ("order", "amount", "refund_type", "remote_refund_id", "created_at", "processed_at")


@admin.register(InventoryReservation)
class InventoryReservationAdmin(admin.ModelAdmin):
    list_display = ("order", "product", "variant", "quantity", "status", "expires_at", "resolved_at")
    list_filter = ("status",)
    search_fields = ("order__order_number",)
