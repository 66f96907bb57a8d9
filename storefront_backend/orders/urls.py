# orders/urls.py
"""
ORDERS API URLS

Mounted in backend/urls.py at:
    /api/orders/
"""

from django.urls import path
from rest_framework.routers import SimpleRouter

from orders.views.order import OrderViewSet
from orders.views.payment_webhook import PaymentWebhookView

router = SimpleRouter()
router.register("", OrderViewSet, basename="orders")

urlpatterns = [
    path("webhooks/payment/", PaymentWebhookView.as_view(), name="payment-webhook"),
] + router.urls
