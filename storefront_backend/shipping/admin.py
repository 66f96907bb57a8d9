# shipping/admin.py

from django.contrib import admin

from shipping.models import ShipmentAttempt


@admin.register(ShipmentAttempt)
class ShipmentAttemptAdmin(admin.ModelAdmin):
    list_display = ("order", "attempt_number", "succeeded", "shipment_id", "created_at")
    list_filter = ("succeeded",)
    search_fields = ("order__order_number", "shipment_id")
    readonly_fields = ("order", "attempt_number", "succeeded", "error", "shipment_id", "created_at")
