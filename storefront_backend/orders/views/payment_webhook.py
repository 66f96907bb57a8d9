# orders/views/payment_webhook.py

"""
POST /api/orders/webhooks/payment/

Gateway -> server notifications. Authenticated only by the HMAC signature
over the raw body; session/JWT auth is disabled for this endpoint.
"""

from __future__ import annotations

import json
import logging

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.services.payment_webhook import PaymentWebhookHandler
from orders.views.throttles import WebhookThrottle
from payments.exceptions import GatewayConfigurationError

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Razorpay-Signature"


class PaymentWebhookView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [WebhookThrottle]

    @extend_schema(request=None, responses={200: dict, 400: dict})
    def post(self, request, *args, **kwargs):
        raw_body = request.body or b""
        signature = request.headers.get(SIGNATURE_HEADER)

        handler = PaymentWebhookHandler()

        try:
            valid = handler.verify_signature(raw_body=raw_body, signature=signature)
        except GatewayConfigurationError:
            logger.exception("Payment webhook received but gateway is not configured")
            return Response({"ok": False, "detail": "Not configured"}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        if not valid:
            logger.warning("Invalid payment webhook signature")
            return Response({"ok": False, "detail": "Invalid signature"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            payload = json.loads(raw_body.decode("utf-8") or "{}")
        except (UnicodeDecodeError, ValueError):
            logger.warning("Payment webhook body is not valid JSON")
            return Response({"ok": False, "detail": "Invalid payload"}, status=status.HTTP_400_BAD_REQUEST)

        if not isinstance(payload, dict):
            return Response({"ok": True, "action": "ignored"}, status=status.HTTP_200_OK)

        action = handler.handle(payload)
        logger.info("Payment webhook processed", extra={"event": payload.get("event"), "action": action})
        return Response({"ok": True, "action": action}, status=status.HTTP_200_OK)
