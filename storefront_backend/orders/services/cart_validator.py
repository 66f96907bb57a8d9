# orders/services/cart_validator.py

"""
CART VALIDATOR (READ-ONLY)

Resolves each requested line against the catalog and either returns
validated lines carrying server prices, or rejects the whole cart with a
per-line issue list. Client-submitted prices are never read.

Duplicate lines for the same product/variant are merged first so a split
request cannot bypass the stock check.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from catalog.models import Product, ProductVariant
from catalog.services.catalog_reader import CatalogReader
from orders.services.exceptions import CartValidationError
from orders.services.pricing import _money

ISSUE_NOT_FOUND = "not_found"
ISSUE_UNAVAILABLE = "unavailable"
ISSUE_VARIANT_REQUIRED = "variant_required"
ISSUE_VARIANT_NOT_FOUND = "variant_not_found"
ISSUE_VARIANT_INACTIVE = "variant_inactive"
ISSUE_INSUFFICIENT_STOCK = "insufficient_stock"
ISSUE_INVALID_QUANTITY = "invalid_quantity"


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int
    variant_id: str | None = None


@dataclass(frozen=True)
class ValidatedLine:
    product: Product
    variant: ProductVariant | None
    quantity: int
    unit_price: Decimal
    title: str
    image_url: str = ""
    variant_attributes: dict = field(default_factory=dict)
    variant_sku: str = ""

    @property
    def total_price(self) -> Decimal:
        return _money(self.unit_price * self.quantity)

    @property
    def tracks_stock(self) -> bool:
        if self.variant is not None:
            return bool(self.variant.track_quantity)
        return bool(self.product.track_quantity)


def _to_int_qty(value) -> int:
    if isinstance(value, bool):
        raise ValueError("quantity must be a whole integer unit")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValueError("quantity must be a whole integer unit")


def merge_lines(raw_items) -> list[CartLine]:
    """Collapse duplicate (product, variant) requests, preserving first-seen order."""
    merged: dict[tuple, int] = {}
    for item in raw_items:
        key = (str(item["product_id"]), str(item["variant_id"]) if item.get("variant_id") else None)
        merged[key] = merged.get(key, 0) + _to_int_qty(item.get("quantity"))
    return [
        CartLine(product_id=pid, variant_id=vid, quantity=qty)
        for (pid, vid), qty in merged.items()
    ]


class CartValidator:
    def __init__(self, *, catalog=None):
        self.catalog = catalog or CatalogReader()

    def validate(self, *, store_id, items) -> list[ValidatedLine]:
        """
        Returns validated lines or raises CartValidationError(issues).
        """
        issues: list[dict] = []

        try:
            lines = merge_lines(items)
        except (KeyError, ValueError) as exc:
            raise CartValidationError(
                [{"index": None, "code": ISSUE_INVALID_QUANTITY, "message": str(exc)}]
            ) from exc

        if not lines:
            raise CartValidationError(
                [{"index": None, "code": ISSUE_INVALID_QUANTITY, "message": "Cart is empty"}]
            )

        products = self.catalog.get_products(
            store_id=store_id, product_ids=[ln.product_id for ln in lines]
        )
        variants = self.catalog.get_variants(
            variant_ids=[ln.variant_id for ln in lines if ln.variant_id]
        )

        validated: list[ValidatedLine] = []

        for index, line in enumerate(lines):
            issue = {"index": index, "product_id": line.product_id, "variant_id": line.variant_id}

            if line.quantity < 1:
                issues.append({**issue, "code": ISSUE_INVALID_QUANTITY, "message": "Quantity must be at least 1"})
                continue

            product = products.get(line.product_id)
            if product is None:
                issues.append({**issue, "code": ISSUE_NOT_FOUND, "message": "Product not found"})
                continue

            if not product.is_sellable:
                issues.append({
                    **issue,
                    "code": ISSUE_UNAVAILABLE,
                    "message": f"{product.title} is no longer available",
                })
                continue

            variant = None
            if line.variant_id:
                variant = variants.get(line.variant_id)
                if variant is None or str(variant.product_id) != str(product.id):
                    issues.append({**issue, "code": ISSUE_VARIANT_NOT_FOUND, "message": "Variant not found"})
                    continue
                if variant.status != ProductVariant.STATUS_ACTIVE:
                    issues.append({
                        **issue,
                        "code": ISSUE_VARIANT_INACTIVE,
                        "message": f"Selected option of {product.title} is not available",
                    })
                    continue
            elif product.has_variants:
                issues.append({
                    **issue,
                    "code": ISSUE_VARIANT_REQUIRED,
                    "message": f"Please select an option for {product.title}",
                })
                continue

            stock_row = variant if variant is not None else product
            if stock_row.track_quantity and stock_row.quantity < line.quantity:
                issues.append({
                    **issue,
                    "code": ISSUE_INSUFFICIENT_STOCK,
                    "message": f"Only {stock_row.quantity} of {product.title} available",
                    "available": stock_row.quantity,
                    "requested": line.quantity,
                })
                continue

            unit_price = _money(variant.effective_price() if variant is not None else product.price)

            validated.append(
                ValidatedLine(
                    product=product,
                    variant=variant,
                    quantity=line.quantity,
                    unit_price=unit_price,
                    title=product.title,
                    image_url=(variant.image_url if variant is not None and variant.image_url else product.image_url),
                    variant_attributes=dict(variant.attributes or {}) if variant is not None else {},
                    variant_sku=(variant.sku if variant is not None else ""),
                )
            )

        if issues:
            raise CartValidationError(issues)

        return validated
