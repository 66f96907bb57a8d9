# catalog/services/catalog_reader.py

"""
CATALOG READER (READ-ONLY)

The order pipeline never queries catalog tables directly; it asks a reader.
Tests and alternative storage backends can hand CartValidator any object
exposing the same two methods.
"""

from __future__ import annotations

from typing import Iterable

from catalog.models import Product, ProductVariant


class CatalogReader:
    """ORM-backed product/variant lookup, scoped to one store."""

    def get_products(self, *, store_id, product_ids: Iterable) -> dict:
        ids = {str(pid) for pid in product_ids}
        qs = Product.objects.filter(store_id=store_id, id__in=ids)
        return {str(p.id): p for p in qs}

    def get_variants(self, *, variant_ids: Iterable) -> dict:
        ids = {str(vid) for vid in variant_ids}
        if not ids:
            return {}
        qs = ProductVariant.objects.select_related("product").filter(id__in=ids)
        return {str(v.id): v for v in qs}
