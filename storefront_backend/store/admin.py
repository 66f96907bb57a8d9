# store/admin.py

from django.contrib import admin

from store.models import Store


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "owner",
        "is_active",
        "cod_enabled",
        "auto_create_shipment",
        "created_at",
    )
    list_filter = ("is_active", "cod_enabled")
    search_fields = ("name", "contact_email")
    readonly_fields = ("created_at", "updated_at")
    exclude = ("gateway_key_secret_encrypted",)
