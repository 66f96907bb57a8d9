# catalog/admin.py

from django.contrib import admin

from catalog.models import Product, ProductVariant


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = ("sku", "attributes", "price", "status", "track_quantity", "quantity")


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "sku",
        "store",
        "price",
        "status",
        "track_quantity",
        "quantity",
        "has_variants",
    )
    list_filter = ("status", "has_variants", "store")
    search_fields = ("title", "sku")
    inlines = [ProductVariantInline]


@admin.register(ProductVariant)
class ProductVariantAdmin(admin.ModelAdmin):
    list_display = ("product", "sku", "price", "status", "quantity")
    list_filter = ("status",)
    search_fields = ("sku", "product__title")
