# orders/management/commands/release_expired_reservations.py

"""
Release stock held by online orders whose payment never arrived.

For each order with an expired HELD reservation and payment still pending:
payment_status pending -> failed and held stock returned (same contract as
a payment.failed webhook). Safe to run repeatedly (cron).
"""

from django.core.management.base import BaseCommand
from django.utils import timezone

from orders.models import Order
from orders.services.inventory import InventoryReservationManager
from orders.services.payment_verification import PaymentVerificationService


class Command(BaseCommand):
    help = "Release inventory held by unpaid online orders past their reservation expiry."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List affected orders without changing anything.",
        )

    def handle(self, *args, **options):
        inventory = InventoryReservationManager()
        verification = PaymentVerificationService(inventory=inventory)

        order_ids = inventory.expired_order_ids(now=timezone.now())
        orders = Order.objects.filter(
            pk__in=order_ids,
            payment_method=Order.PAYMENT_METHOD_ONLINE,
            payment_status=Order.PAYMENT_STATUS_PENDING,
        )

        released = 0
        for order in orders:
            if options["dry_run"]:
                self.stdout.write(f"would release {order.order_number}")
                continue
            if verification.mark_failed(order=order, reason="Payment window expired"):
                released += 1
                self.stdout.write(f"released {order.order_number}")

        self.stdout.write(self.style.SUCCESS(f"Released {released} expired reservation(s)."))
