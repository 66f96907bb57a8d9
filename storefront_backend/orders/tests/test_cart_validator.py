# orders/tests/test_cart_validator.py

import uuid
from decimal import Decimal

from django.test import TestCase

from catalog.models import Product, ProductVariant
from orders.models import Order
from orders.services.cart_validator import (
    ISSUE_INSUFFICIENT_STOCK,
    ISSUE_NOT_FOUND,
    ISSUE_UNAVAILABLE,
    ISSUE_VARIANT_INACTIVE,
    ISSUE_VARIANT_REQUIRED,
    CartValidator,
    merge_lines,
)
from orders.services.exceptions import CartValidationError
from orders.services.pricing import compute_totals
from orders.tests.fakes import make_product, make_store, make_variant


class CartValidatorTests(TestCase):
    def setUp(self):
        self.store = make_store()
        self.product = make_product(self.store, quantity=3)
        self.validator = CartValidator()

    def _issues(self, items):
        with self.assertRaises(CartValidationError) as ctx:
            self.validator.validate(store_id=self.store.id, items=items)
        return ctx.exception.issues

    # ======================================================
    # HAPPY PATH
    # ======================================================

    def test_valid_line_uses_server_price(self):
        lines = self.validator.validate(
            store_id=self.store.id,
            items=[{"product_id": str(self.product.id), "quantity": 2, "price": "0.01"}],
        )

        self.assertEqual(len(lines), 1)
        self.assertEqual(lines[0].unit_price, Decimal("100.00"))
        self.assertEqual(lines[0].total_price, Decimal("200.00"))

    def test_duplicate_lines_are_merged_before_stock_check(self):
        # 2 + 2 exceeds the 3 on hand even though each line alone fits
        issues = self._issues([
            {"product_id": str(self.product.id), "quantity": 2},
            {"product_id": str(self.product.id), "quantity": 2},
        ])
        self.assertEqual(issues[0]["code"], ISSUE_INSUFFICIENT_STOCK)
        self.assertEqual(issues[0]["requested"], 4)

    def test_untracked_product_ignores_quantity(self):
        self.product.track_quantity = False
        self.product.quantity = 0
        self.product.save()

        lines = self.validator.validate(
            store_id=self.store.id,
            items=[{"product_id": str(self.product.id), "quantity": 50}],
        )
        self.assertFalse(lines[0].tracks_stock)

    # ======================================================
    # REJECTIONS
    # ======================================================

    def test_unknown_product(self):
        issues = self._issues([{"product_id": str(uuid.uuid4()), "quantity": 1}])
        self.assertEqual(issues[0]["code"], ISSUE_NOT_FOUND)

    def test_product_from_another_store_is_not_found(self):
        other = make_product(make_store(name="Other"), sku="OTHER")
        issues = self._issues([{"product_id": str(other.id), "quantity": 1}])
        self.assertEqual(issues[0]["code"], ISSUE_NOT_FOUND)

    def test_draft_and_archived_products_are_unavailable(self):
        for status in (Product.STATUS_DRAFT, Product.STATUS_ARCHIVED):
            with self.subTest(status=status):
                Product.objects.filter(pk=self.product.pk).update(status=status)
                issues = self._issues([{"product_id": str(self.product.id), "quantity": 1}])
                self.assertEqual(issues[0]["code"], ISSUE_UNAVAILABLE)

    def test_every_bad_line_is_reported(self):
        archived = make_product(self.store, sku="OLD", status=Product.STATUS_ARCHIVED)
        issues = self._issues([
            {"product_id": str(self.product.id), "quantity": 9},
            {"product_id": str(archived.id), "quantity": 1},
        ])
        self.assertEqual(
            [i["code"] for i in issues],
            [ISSUE_INSUFFICIENT_STOCK, ISSUE_UNAVAILABLE],
        )

    def test_non_integer_quantity_rejected(self):
        issues = self._issues([{"product_id": str(self.product.id), "quantity": "1.5"}])
        self.assertEqual(issues[0]["index"], None)

    def test_empty_cart_rejected(self):
        self._issues([])

    # ======================================================
    # VARIANTS
    # ======================================================

    def test_variant_required_when_product_has_variants(self):
        Product.objects.filter(pk=self.product.pk).update(has_variants=True)
        issues = self._issues([{"product_id": str(self.product.id), "quantity": 1}])
        self.assertEqual(issues[0]["code"], ISSUE_VARIANT_REQUIRED)

    def test_variant_price_and_image_override(self):
        variant = make_variant(
            self.product,
            price=Decimal("120.00"),
            image_url="https://cdn.example.com/tee-m.png",
        )
        lines = self.validator.validate(
            store_id=self.store.id,
            items=[{"product_id": str(self.product.id), "variant_id": str(variant.id), "quantity": 1}],
        )
        self.assertEqual(lines[0].unit_price, Decimal("120.00"))
        self.assertEqual(lines[0].image_url, "https://cdn.example.com/tee-m.png")
        self.assertEqual(lines[0].variant_attributes, {"size": "M"})

    def test_variant_without_price_uses_product_price(self):
        variant = make_variant(self.product)
        lines = self.validator.validate(
            store_id=self.store.id,
            items=[{"product_id": str(self.product.id), "variant_id": str(variant.id), "quantity": 1}],
        )
        self.assertEqual(lines[0].unit_price, Decimal("100.00"))

    def test_disabled_variant_rejected(self):
        variant = make_variant(self.product, status=ProductVariant.STATUS_DISABLED)
        issues = self._issues([
            {"product_id": str(self.product.id), "variant_id": str(variant.id), "quantity": 1}
        ])
        self.assertEqual(issues[0]["code"], ISSUE_VARIANT_INACTIVE)

    def test_variant_stock_is_checked_not_product_stock(self):
        variant = make_variant(self.product, quantity=1)
        issues = self._issues([
            {"product_id": str(self.product.id), "variant_id": str(variant.id), "quantity": 2}
        ])
        self.assertEqual(issues[0]["code"], ISSUE_INSUFFICIENT_STOCK)
        self.assertEqual(issues[0]["available"], 1)


class MergeLinesTests(TestCase):
    def test_merge_keeps_variants_apart(self):
        pid = str(uuid.uuid4())
        vid = str(uuid.uuid4())
        lines = merge_lines([
            {"product_id": pid, "quantity": 1},
            {"product_id": pid, "variant_id": vid, "quantity": 2},
            {"product_id": pid, "quantity": 3},
        ])
        self.assertEqual([(ln.variant_id, ln.quantity) for ln in lines], [(None, 4), (vid, 2)])


class PricingTests(TestCase):
    def setUp(self):
        self.store = make_store()
        self.product = make_product(self.store, quantity=100)

    def _lines(self, quantity, price=None):
        if price is not None:
            Product.objects.filter(pk=self.product.pk).update(price=price)
        return CartValidator().validate(
            store_id=self.store.id,
            items=[{"product_id": str(self.product.id), "quantity": quantity}],
        )

    def test_online_total_is_subtotal_plus_flat_shipping(self):
        totals = compute_totals(store=self.store, lines=self._lines(2), payment_method=Order.PAYMENT_METHOD_ONLINE)
        self.assertEqual(totals.subtotal, Decimal("200.00"))
        self.assertEqual(totals.shipping, Decimal("49.00"))
        self.assertEqual(totals.total, Decimal("249.00"))

    def test_cod_adds_fee_to_shipping(self):
        totals = compute_totals(store=self.store, lines=self._lines(2), payment_method=Order.PAYMENT_METHOD_COD)
        self.assertEqual(totals.shipping, Decimal("69.00"))
        self.assertEqual(totals.total, Decimal("269.00"))

    def test_free_shipping_at_threshold(self):
        totals = compute_totals(
            store=self.store,
            lines=self._lines(1, price=Decimal("999.00")),
            payment_method=Order.PAYMENT_METHOD_ONLINE,
        )
        self.assertEqual(totals.shipping, Decimal("0.00"))
        self.assertEqual(totals.total, Decimal("999.00"))

    def test_tax_and_capped_discount(self):
        self.store.tax_rate = Decimal("18.00")
        totals = compute_totals(
            store=self.store,
            lines=self._lines(1, price=Decimal("10.55")),
            payment_method=Order.PAYMENT_METHOD_ONLINE,
            discount=Decimal("50.00"),
        )
        self.assertEqual(totals.tax, Decimal("1.90"))
        self.assertEqual(totals.discount, Decimal("10.55"))
        self.assertEqual(totals.total, totals.subtotal + totals.shipping - totals.discount + totals.tax)
