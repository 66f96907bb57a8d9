# orders/tests/test_cancellation.py

from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from catalog.models import Product
from notifications.models import Notification
from orders.models import Order, Refund
from orders.services.cancellation_orchestrator import CancellationOrchestrator
from orders.services.exceptions import OrphanedPayment, PaymentStateError
from orders.services.inventory import InventoryReservationManager
from orders.services.payment_verification import PaymentVerificationService
from orders.tests.fakes import (
    NO_CARRIER_SHIPPING,
    TEST_PAYMENTS,
    FakeGateway,
    make_product,
    make_store,
    place_order,
    place_paid_order,
)

User = get_user_model()


@override_settings(PAYMENTS=TEST_PAYMENTS, SHIPPING=NO_CARRIER_SHIPPING)
class CancellationOrchestratorTests(TestCase):
    """
    GUARANTEES:
    - status always ends cancelled when the precondition holds
    - refund + restock are compensations: failures become warnings
    - cancelling twice restores stock once
    """

    def setUp(self):
        FakeGateway.reset()
        self.store = make_store()
        self.product = make_product(self.store, quantity=10)
        self.orchestrator = CancellationOrchestrator()

    def _stock(self):
        return Product.objects.get(pk=self.product.pk).quantity

    def test_cod_order_cancel_restores_stock_without_refund(self):
        order = place_order(self.store, self.product, 3, payment_method=Order.PAYMENT_METHOD_COD)
        self.assertEqual(self._stock(), 7)

        result = self.orchestrator.cancel(order_id=order.pk, reason="customer request")

        self.assertTrue(result.cancelled)
        self.assertFalse(result.refund_issued)
        self.assertTrue(result.inventory_restored)
        self.assertEqual(result.warnings, [])
        self.assertEqual(self._stock(), 10)

        order.refresh_from_db()
        self.assertEqual(order.fulfillment_status, Order.STATUS_CANCELLED)
        self.assertEqual(order.cancellation_reason, "customer request")
        self.assertIsNotNone(order.cancelled_at)
        self.assertEqual(FakeGateway.calls[-1:], [])

    def test_second_cancel_is_a_no_op(self):
        order = place_order(self.store, self.product, 3, payment_method=Order.PAYMENT_METHOD_COD)

        self.orchestrator.cancel(order_id=order.pk)
        again = self.orchestrator.cancel(order_id=order.pk)

        self.assertTrue(again.already_cancelled)
        self.assertEqual(self._stock(), 10)

    def test_unpaid_online_order_releases_hold(self):
        order = place_order(self.store, self.product, 2)

        result = self.orchestrator.cancel(order_id=order.pk)

        self.assertTrue(result.inventory_restored)
        self.assertEqual(self._stock(), 10)
        order.refresh_from_db()
        self.assertEqual(order.payment_status, Order.PAYMENT_STATUS_PENDING)

    def test_paid_order_is_refunded_in_full_and_restocked_once(self):
        order = place_paid_order(self.store, self.product, 2)

        with self.captureOnCommitCallbacks(execute=True):
            result = self.orchestrator.cancel(order_id=order.pk, reason="out of stock")

        self.assertTrue(result.refund_issued)
        refund = Refund.objects.get(pk=result.refund_id)
        self.assertEqual(refund.amount, order.total_amount)
        self.assertEqual(refund.refund_type, Refund.TYPE_FULL)

        order.refresh_from_db()
        self.assertEqual(order.payment_status, Order.PAYMENT_STATUS_REFUNDED)
        self.assertEqual(order.fulfillment_status, Order.STATUS_CANCELLED)
        self.assertEqual(self._stock(), 10)

        # One cancellation email with the refund timeline; no separate refund email.
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn("cancelled", mail.outbox[0].subject)
        self.assertIn("5-7 business days", mail.outbox[0].body)
        self.assertTrue(
            Notification.objects.filter(store=self.store, type=Notification.TYPE_ORDER_CANCELLED).exists()
        )

    def test_refund_failure_does_not_block_cancellation(self):
        order = place_paid_order(self.store, self.product, 2)
        FakeGateway.fail_refunds = True

        result = self.orchestrator.cancel(order_id=order.pk)

        self.assertTrue(result.cancelled)
        self.assertFalse(result.refund_issued)
        self.assertEqual(len(result.warnings), 1)
        self.assertTrue(result.warnings[0].startswith("refund"))

        order.refresh_from_db()
        self.assertEqual(order.fulfillment_status, Order.STATUS_CANCELLED)
        self.assertEqual(order.payment_status, Order.PAYMENT_STATUS_PAID)
        self.assertEqual(self._stock(), 10)

    def test_capture_arriving_mid_cancellation_is_refused_and_escalated(self):
        order = place_order(self.store, self.product, 2)
        refused = []

        class CaptureDuringRelease(InventoryReservationManager):
            def release(self, *, order):
                count = super().release(order=order)
                try:
                    PaymentVerificationService().mark_paid(order=order, remote_payment_id="pay_RACE")
                except PaymentStateError as exc:
                    refused.append(exc)
                return count

        orchestrator = CancellationOrchestrator(inventory=CaptureDuringRelease())
        with self.captureOnCommitCallbacks(execute=True):
            result = orchestrator.cancel(order_id=order.pk, reason="customer request")

        self.assertTrue(result.cancelled)
        self.assertEqual(result.warnings, [])
        self.assertEqual(len(refused), 1)
        self.assertIsInstance(refused[0], OrphanedPayment)

        order.refresh_from_db()
        self.assertEqual(order.fulfillment_status, Order.STATUS_CANCELLED)
        self.assertEqual(order.payment_status, Order.PAYMENT_STATUS_PENDING)
        self.assertEqual(order.remote_payment_id, "pay_RACE")
        self.assertEqual(self._stock(), 10)
        self.assertTrue(
            Notification.objects.filter(store=self.store, type=Notification.TYPE_PAYMENT_ORPHANED).exists()
        )

    def test_status_is_cancelled_before_compensations_run(self):
        order = place_paid_order(self.store, self.product, 2)
        seen = []

        class Recording(InventoryReservationManager):
            def restore(self, *, order):
                seen.append(Order.objects.get(pk=order.pk).fulfillment_status)
                return super().restore(order=order)

        result = CancellationOrchestrator(inventory=Recording()).cancel(order_id=order.pk)

        self.assertTrue(result.refund_issued)
        self.assertEqual(seen, [Order.STATUS_CANCELLED])
        self.assertEqual(self._stock(), 10)

    def test_tracking_sent_with_cancel_is_stored(self):
        order = place_order(self.store, self.product, 1, payment_method=Order.PAYMENT_METHOD_COD)

        self.orchestrator.cancel(
            order_id=order.pk,
            reason="returned to origin",
            tracking={"tracking_number": "AWB-RTO-1", "courier_name": "Delhivery"},
        )

        order.refresh_from_db()
        self.assertEqual(order.fulfillment_status, Order.STATUS_CANCELLED)
        self.assertEqual(order.tracking_number, "AWB-RTO-1")
        self.assertEqual(order.courier_name, "Delhivery")


@override_settings(PAYMENTS=TEST_PAYMENTS, SHIPPING=NO_CARRIER_SHIPPING)
class CancelAPITests(TestCase):
    def setUp(self):
        FakeGateway.reset()
        self.owner = User.objects.create_user(username="merchant", password="pass")
        self.store = make_store(owner=self.owner)
        self.product = make_product(self.store, quantity=10)
        self.client = APIClient()
        self.client.force_authenticate(user=self.owner)

    def test_delete_cancels_and_reports_refund(self):
        order = place_paid_order(self.store, self.product, 1)

        res = self.client.delete(reverse("orders-detail", args=[order.pk]), {"reason": "fraud"}, format="json")

        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertTrue(res.data["cancelled"])
        self.assertTrue(res.data["refunded"])
        self.assertIsNotNone(res.data["refund_id"])
        self.assertEqual(res.data["warnings"], [])

    def test_delete_after_shipping_is_rejected(self):
        order = place_order(self.store, self.product, 1, payment_method=Order.PAYMENT_METHOD_COD)
        Order.objects.filter(pk=order.pk).update(fulfillment_status=Order.STATUS_SHIPPED)

        res = self.client.delete(reverse("orders-detail", args=[order.pk]))

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["error"]["code"], "invalid_transition")
        order.refresh_from_db()
        self.assertEqual(order.fulfillment_status, Order.STATUS_SHIPPED)
        self.assertEqual(Product.objects.get(pk=self.product.pk).quantity, 9)

    def test_patch_cancel_from_shipped_follows_lifecycle_table(self):
        order = place_order(self.store, self.product, 1, payment_method=Order.PAYMENT_METHOD_COD)
        Order.objects.filter(pk=order.pk).update(fulfillment_status=Order.STATUS_SHIPPED)

        res = self.client.patch(
            reverse("orders-detail", args=[order.pk]),
            {"fulfillment_status": "cancelled", "reason": "lost in transit"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertTrue(res.data["cancelled"])
        self.assertEqual(Product.objects.get(pk=self.product.pk).quantity, 10)

    def test_patch_cancel_keeps_tracking_fields(self):
        order = place_order(self.store, self.product, 1, payment_method=Order.PAYMENT_METHOD_COD)
        Order.objects.filter(pk=order.pk).update(fulfillment_status=Order.STATUS_SHIPPED)

        res = self.client.patch(
            reverse("orders-detail", args=[order.pk]),
            {
                "fulfillment_status": "cancelled",
                "reason": "returned to origin",
                "tracking_number": "AWB-RTO-9",
                "tracking_url": "https://track.example.com/rto9",
            },
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        order.refresh_from_db()
        self.assertEqual(order.fulfillment_status, Order.STATUS_CANCELLED)
        self.assertEqual(order.tracking_number, "AWB-RTO-9")
        self.assertEqual(order.tracking_url, "https://track.example.com/rto9")

    def test_delete_twice_is_harmless(self):
        order = place_order(self.store, self.product, 2, payment_method=Order.PAYMENT_METHOD_COD)
        url = reverse("orders-detail", args=[order.pk])

        self.client.delete(url)
        res = self.client.delete(url)

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertTrue(res.data["already_cancelled"])
        self.assertEqual(Product.objects.get(pk=self.product.pk).quantity, 10)
