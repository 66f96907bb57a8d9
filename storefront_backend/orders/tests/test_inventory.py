# orders/tests/test_inventory.py

from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone

from catalog.models import Product
from orders.models import InventoryReservation, Order
from orders.services.cart_validator import CartValidator
from orders.services.exceptions import InventoryUnavailable
from orders.services.inventory import InventoryReservationManager, decrement_stock
from orders.tests.fakes import (
    NO_CARRIER_SHIPPING,
    TEST_PAYMENTS,
    FakeGateway,
    make_order,
    make_product,
    make_store,
    place_order,
)


class ConditionalDecrementTests(TestCase):
    """
    The affected-row count of the conditional update is the only success
    signal; a losing caller never drives stock negative.
    """

    def setUp(self):
        self.product = make_product(make_store(), quantity=1)

    def test_last_unit_can_be_taken_once(self):
        self.assertTrue(decrement_stock(product_id=self.product.pk, variant_id=None, quantity=1))
        self.assertFalse(decrement_stock(product_id=self.product.pk, variant_id=None, quantity=1))

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 0)

    def test_oversized_request_leaves_stock_untouched(self):
        self.assertFalse(decrement_stock(product_id=self.product.pk, variant_id=None, quantity=2))
        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 1)


class ReservationManagerTests(TestCase):
    def setUp(self):
        self.store = make_store()
        self.tee = make_product(self.store, sku="TEE", quantity=5)
        self.cap = make_product(self.store, sku="CAP", title="Cap", quantity=1)
        self.manager = InventoryReservationManager(ttl_minutes=15)

    def _lines(self, tee_qty, cap_qty):
        return CartValidator().validate(
            store_id=self.store.id,
            items=[
                {"product_id": str(self.tee.id), "quantity": tee_qty},
                {"product_id": str(self.cap.id), "quantity": cap_qty},
            ],
        )

    def _stock(self):
        return (
            Product.objects.get(pk=self.tee.pk).quantity,
            Product.objects.get(pk=self.cap.pk).quantity,
        )

    def test_reserve_holds_every_line(self):
        order = make_order(self.store)
        rows = self.manager.reserve(order=order, lines=self._lines(2, 1))

        self.assertEqual(len(rows), 2)
        self.assertTrue(all(r.status == InventoryReservation.STATUS_HELD for r in rows))
        self.assertTrue(all(r.expires_at > timezone.now() for r in rows))
        self.assertEqual(self._stock(), (3, 0))

    def test_reserve_is_all_or_nothing(self):
        order = make_order(self.store)
        lines = self._lines(2, 1)
        # Someone else buys the cap between validation and reservation.
        Product.objects.filter(pk=self.cap.pk).update(quantity=0)

        with self.assertRaises(InventoryUnavailable) as ctx:
            self.manager.reserve(order=order, lines=lines)

        self.assertEqual(ctx.exception.product_id, str(self.cap.pk))
        self.assertEqual(self._stock(), (5, 0))
        self.assertFalse(InventoryReservation.objects.filter(order=order).exists())

    def test_release_returns_stock_once(self):
        order = make_order(self.store)
        self.manager.reserve(order=order, lines=self._lines(2, 1))

        self.assertEqual(self.manager.release(order=order), 2)
        self.assertEqual(self.manager.release(order=order), 0)
        self.assertEqual(self._stock(), (5, 1))

    def test_commit_then_restore_returns_stock_once(self):
        order = make_order(self.store)
        self.manager.reserve(order=order, lines=self._lines(2, 1))

        self.assertEqual(self.manager.commit(order=order), 2)
        self.assertEqual(self._stock(), (3, 0))
        # Committed stock is not "held" any more.
        self.assertEqual(self.manager.release(order=order), 0)

        self.assertEqual(self.manager.restore(order=order), 2)
        self.assertEqual(self.manager.restore_all(order=order), 0)
        self.assertEqual(self._stock(), (5, 1))

    def test_expired_order_ids(self):
        order = make_order(self.store)
        self.manager.reserve(order=order, lines=self._lines(1, 1))

        self.assertEqual(self.manager.expired_order_ids(), [])
        later = timezone.now() + timedelta(minutes=16)
        self.assertEqual(self.manager.expired_order_ids(now=later), [order.pk])


@override_settings(PAYMENTS=TEST_PAYMENTS, SHIPPING=NO_CARRIER_SHIPPING)
class ReleaseExpiredReservationsCommandTests(TestCase):
    def setUp(self):
        FakeGateway.reset()
        self.store = make_store()
        self.product = make_product(self.store, quantity=5)

    def _expire(self, order):
        InventoryReservation.objects.filter(order=order).update(
            expires_at=timezone.now() - timedelta(minutes=1)
        )

    def test_expired_online_order_is_failed_and_stock_released(self):
        order = place_order(self.store, self.product, 2)
        self._expire(order)

        out = StringIO()
        call_command("release_expired_reservations", stdout=out)

        order.refresh_from_db()
        self.product.refresh_from_db()
        self.assertEqual(order.payment_status, Order.PAYMENT_STATUS_FAILED)
        self.assertEqual(self.product.quantity, 5)
        self.assertIn("Released 1", out.getvalue())

    def test_dry_run_changes_nothing(self):
        order = place_order(self.store, self.product, 2)
        self._expire(order)

        call_command("release_expired_reservations", "--dry-run", stdout=StringIO())

        order.refresh_from_db()
        self.product.refresh_from_db()
        self.assertEqual(order.payment_status, Order.PAYMENT_STATUS_PENDING)
        self.assertEqual(self.product.quantity, 3)

    def test_unexpired_hold_is_kept(self):
        order = place_order(self.store, self.product, 2)

        call_command("release_expired_reservations", stdout=StringIO())

        order.refresh_from_db()
        self.assertEqual(order.payment_status, Order.PAYMENT_STATUS_PENDING)
