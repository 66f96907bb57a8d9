# orders/tests/test_order_api.py

from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

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
from shipping.models import ShipmentAttempt

User = get_user_model()


@override_settings(PAYMENTS=TEST_PAYMENTS, SHIPPING=NO_CARRIER_SHIPPING)
class OrderReadTests(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(username="merchant", password="pass")
        self.store = make_store(owner=self.owner)
        self.other_store = make_store(name="Elsewhere")

        self.mine = make_order(self.store)
        self.theirs = make_order(self.other_store)

        self.client = APIClient()
        self.client.force_authenticate(user=self.owner)

    def test_list_is_scoped_to_owned_stores(self):
        res = self.client.get(reverse("orders-list"))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        ids = [row["id"] for row in res.data["results"]]
        self.assertEqual(ids, [str(self.mine.pk)])

    def test_staff_sees_every_order(self):
        staff = User.objects.create_user(username="ops", password="pass", is_staff=True)
        self.client.force_authenticate(user=staff)

        res = self.client.get(reverse("orders-list"))

        self.assertEqual(res.data["count"], 2)

    def test_filter_by_fulfillment_status(self):
        make_order(self.store, fulfillment_status=Order.STATUS_SHIPPED)

        res = self.client.get(reverse("orders-list"), {"fulfillment_status": "shipped"})

        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["fulfillment_status"], "shipped")

    def test_retrieve_foreign_order_is_not_found(self):
        res = self.client.get(reverse("orders-detail", args=[self.theirs.pk]))
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)


@override_settings(PAYMENTS=TEST_PAYMENTS, SHIPPING=NO_CARRIER_SHIPPING)
class OrderStatusUpdateTests(TestCase):
    """
    PATCH /api/orders/{id}/
    """

    def setUp(self):
        self.owner = User.objects.create_user(username="merchant", password="pass")
        self.store = make_store(owner=self.owner)
        self.client = APIClient()
        self.client.force_authenticate(user=self.owner)

    def _patch(self, order, body):
        return self.client.patch(reverse("orders-detail", args=[order.pk]), body, format="json")

    def test_valid_transition_with_tracking(self):
        order = make_order(self.store, fulfillment_status=Order.STATUS_PACKED)

        with self.captureOnCommitCallbacks(execute=True):
            res = self._patch(order, {
                "fulfillment_status": "shipped",
                "tracking_number": "AWB999",
                "courier_name": "BlueDart",
            })

        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertEqual(res.data["fulfillment_status"], "shipped")
        self.assertEqual(res.data["tracking_number"], "AWB999")
        self.assertIsNotNone(res.data["shipped_at"])
        self.assertEqual(len(mail.outbox), 1)

    def test_invalid_transition_lists_allowed_targets(self):
        order = make_order(self.store)

        res = self._patch(order, {"fulfillment_status": "delivered"})

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        error = res.data["error"]
        self.assertEqual(error["code"], "invalid_transition")
        self.assertEqual(error["details"]["current"], "unfulfilled")
        self.assertEqual(error["details"]["target"], "delivered")
        self.assertEqual(
            sorted(error["details"]["allowed"]),
            ["cancelled", "packed", "processing", "shipped"],
        )
        order.refresh_from_db()
        self.assertEqual(order.fulfillment_status, Order.STATUS_UNFULFILLED)

    def test_terminal_order_cannot_move(self):
        order = make_order(self.store, fulfillment_status=Order.STATUS_RETURNED)

        res = self._patch(order, {"fulfillment_status": "shipped"})

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["error"]["details"]["allowed"], [])

    def test_tracking_only_update_keeps_status(self):
        order = make_order(self.store, fulfillment_status=Order.STATUS_SHIPPED)

        res = self._patch(order, {"tracking_url": "https://track.example.com/x"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["fulfillment_status"], "shipped")
        self.assertEqual(res.data["tracking_url"], "https://track.example.com/x")

    def test_empty_patch_is_validation_error(self):
        order = make_order(self.store)
        res = self._patch(order, {})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["error"]["code"], "validation_error")


@override_settings(PAYMENTS=TEST_PAYMENTS, SHIPPING=TEST_SHIPPING)
class ManualShipmentTests(TestCase):
    """
    POST /api/orders/{id}/create-shipment/
    """

    def setUp(self):
        FakeGateway.reset()
        FakeCarrier.reset()
        self.owner = User.objects.create_user(username="merchant", password="pass")
        # Auto-creation off so the manual endpoint is the only booking path.
        self.store = make_store(owner=self.owner, auto_create_shipment=False)
        self.product = make_product(self.store, quantity=10)
        self.client = APIClient()
        self.client.force_authenticate(user=self.owner)

    def _url(self, order):
        return reverse("orders-create-shipment", args=[order.pk])

    def test_creates_shipment(self):
        order = place_order(self.store, self.product, 1, payment_method=Order.PAYMENT_METHOD_COD)

        res = self.client.post(self._url(order))

        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(res.data["awb_code"], "AWB000001")
        order.refresh_from_db()
        self.assertEqual(order.shipment_id, "SHIP-1")
        self.assertEqual(FakeCarrier.pickups, ["SHIP-1"])

    def test_rejects_existing_shipment(self):
        order = make_order(self.store, shipment_id="SHIP-OLD")

        res = self.client.post(self._url(order))

        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["error"]["code"], "shipment_exists")

    def test_rejects_cancelled_order(self):
        order = make_order(self.store, fulfillment_status=Order.STATUS_CANCELLED)

        res = self.client.post(self._url(order))

        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(FakeCarrier.created, [])

    def test_exhausted_retries_do_not_escalate(self):
        FakeCarrier.reset(failures_before_success=5)
        order = place_order(self.store, self.product, 1, payment_method=Order.PAYMENT_METHOD_COD)

        res = self.client.post(self._url(order))

        self.assertEqual(res.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(res.data["error"]["details"]["attempts"], 3)
        self.assertEqual(ShipmentAttempt.objects.filter(order=order).count(), 3)
        self.assertEqual(len(mail.outbox), 0)


@override_settings(PAYMENTS=TEST_PAYMENTS, SHIPPING=NO_CARRIER_SHIPPING)
class ServiceEndpointsTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_health_reports_database_and_wiring(self):
        res = self.client.get(reverse("health-check"))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["db"], "ok")
        self.assertEqual(res.data["payment_gateway"], "configured")
        self.assertEqual(res.data["carrier"], "disabled")

    def test_api_root_lists_order_routes(self):
        res = self.client.get(reverse("api-root"))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["routes"]["verify_payment"], "/api/orders/verify-payment/")
