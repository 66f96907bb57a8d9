# shipping/tests/test_auto_creator.py

from unittest import mock

from django.core import mail
from django.test import TestCase, override_settings

from notifications.models import Notification
from orders.models import Order
from orders.tests.fakes import (
    NO_CARRIER_SHIPPING,
    TEST_PAYMENTS,
    TEST_SHIPPING,
    FakeCarrier,
    FakeGateway,
    make_order,
    make_product,
    make_store,
    place_order,
)
from shipping.carriers.base import load_carrier
from shipping.exceptions import CarrierConfigurationError
from shipping.models import ShipmentAttempt
from shipping.services.auto_creator import (
    ShipmentAutoCreator,
    auto_shipment_enabled,
    build_shipment_request,
)


@override_settings(PAYMENTS=TEST_PAYMENTS, SHIPPING=TEST_SHIPPING)
class ShipmentAutoCreatorTests(TestCase):
    """
    GUARANTEES:
    - bounded attempts with exponential backoff
    - every attempt persisted
    - exhaustion alerts the merchant and leaves the order untouched
    - success never moves the order backwards
    """

    def setUp(self):
        FakeGateway.reset()
        FakeCarrier.reset()
        self.store = make_store(auto_create_shipment=False)
        self.product = make_product(self.store, quantity=10)
        self.order = place_order(self.store, self.product, 1, payment_method=Order.PAYMENT_METHOD_COD)
        self.sleep = mock.Mock()

    def _creator(self, **kwargs):
        kwargs.setdefault("sleep", self.sleep)
        kwargs.setdefault("backoff_seconds", 1.0)
        return ShipmentAutoCreator(carrier=FakeCarrier(), **kwargs)

    def test_success_first_try(self):
        outcome = self._creator().run(self.order.pk)

        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.attempts, 1)
        self.sleep.assert_not_called()

        self.order.refresh_from_db()
        self.assertEqual(self.order.shipment_id, "SHIP-1")
        self.assertEqual(self.order.courier_name, "Test Courier")
        self.assertEqual(self.order.fulfillment_status, Order.STATUS_PROCESSING)
        self.assertEqual(FakeCarrier.pickups, ["SHIP-1"])

    def test_retries_with_backoff_then_succeeds(self):
        FakeCarrier.reset(failures_before_success=2)

        outcome = self._creator().run(self.order.pk)

        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.attempts, 3)
        self.assertEqual([c.args[0] for c in self.sleep.call_args_list], [1.0, 2.0])
        attempts = ShipmentAttempt.objects.filter(order=self.order).order_by("attempt_number")
        self.assertEqual([a.succeeded for a in attempts], [False, False, True])

    def test_exhaustion_escalates_without_touching_order(self):
        FakeCarrier.reset(failures_before_success=10)

        outcome = self._creator().run(self.order.pk)

        self.assertFalse(outcome.ok)
        self.assertTrue(outcome.escalated)
        self.assertEqual(outcome.attempts, 3)
        self.assertEqual(self.sleep.call_count, 2)

        self.order.refresh_from_db()
        self.assertEqual(self.order.fulfillment_status, Order.STATUS_PROCESSING)
        self.assertEqual(self.order.shipment_id, "")

        alert = Notification.objects.get(store=self.store, type=Notification.TYPE_SHIPMENT_FAILED)
        self.assertEqual(alert.priority, Notification.PRIORITY_HIGH)
        self.assertEqual(alert.metadata["attempts"], 3)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["merchant@example.com"])

    def test_unfulfilled_order_moves_forward_to_processing(self):
        order = make_order(self.store)

        self._creator().run(order.pk)

        order.refresh_from_db()
        self.assertEqual(order.fulfillment_status, Order.STATUS_PROCESSING)

    def test_shipped_order_is_skipped(self):
        Order.objects.filter(pk=self.order.pk).update(fulfillment_status=Order.STATUS_SHIPPED)

        outcome = self._creator().run(self.order.pk)

        self.assertTrue(outcome.skipped)
        self.assertEqual(FakeCarrier.created, [])

    def test_cancelled_order_is_skipped(self):
        Order.objects.filter(pk=self.order.pk).update(fulfillment_status=Order.STATUS_CANCELLED)

        outcome = self._creator().run(self.order.pk)

        self.assertTrue(outcome.skipped)
        self.assertFalse(ShipmentAttempt.objects.exists())

    def test_request_carries_order_snapshot(self):
        request = build_shipment_request(self.order)

        self.assertEqual(request.order_number, self.order.order_number)
        self.assertEqual(request.payment_mode, "cod")
        self.assertEqual(request.address["pincode"], "560001")
        self.assertEqual(len(request.items), 1)


class CarrierConfigurationTests(TestCase):
    @override_settings(SHIPPING=NO_CARRIER_SHIPPING)
    def test_no_backend_means_no_carrier(self):
        self.assertIsNone(load_carrier())
        self.assertFalse(auto_shipment_enabled(make_store()))

    @override_settings(SHIPPING=TEST_SHIPPING)
    def test_store_switch_controls_auto_creation(self):
        self.assertTrue(auto_shipment_enabled(make_store()))
        self.assertFalse(auto_shipment_enabled(make_store(name="Manual", auto_create_shipment=False)))

    @override_settings(SHIPPING={**TEST_SHIPPING, "CARRIER_BACKEND": "shipping.carriers.nope.Missing"})
    def test_bad_backend_is_configuration_error(self):
        with self.assertRaises(CarrierConfigurationError):
            load_carrier()

    @override_settings(PAYMENTS=TEST_PAYMENTS, SHIPPING=NO_CARRIER_SHIPPING)
    def test_run_without_carrier_is_skipped(self):
        FakeGateway.reset()
        store = make_store()
        order = place_order(store, make_product(store), 1, payment_method=Order.PAYMENT_METHOD_COD)

        outcome = ShipmentAutoCreator().run(order.pk)

        self.assertTrue(outcome.skipped)
        self.assertEqual(outcome.error, "No carrier configured")
