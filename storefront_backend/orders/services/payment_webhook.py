# orders/services/payment_webhook.py

"""
PAYMENT WEBHOOK HANDLER

Signature: HMAC-SHA256(webhook_secret, raw body), constant-time compare.

Events:
- payment.captured  -> same idempotent mark-paid path as client verification;
                       a capture for a failed or cancelled order is kept and
                       escalated for manual refund (action "orphaned_payment")
- payment.failed    -> pending -> failed, release holds, merchant alert
- refund.processed  -> pending Refund row -> processed
- refund.failed     -> pending Refund row -> failed

Unknown orders/refunds/events are acknowledged and logged; the gateway
should not keep retrying something we will never match.
"""

from __future__ import annotations

import logging

from django.utils import timezone

from orders.models import Order, Refund
from orders.services.exceptions import OrphanedPayment, PaymentStateError
from orders.services.payment_verification import PaymentVerificationService
from payments.services.resolver import GatewayResolver

logger = logging.getLogger(__name__)


def _entity(payload: dict, kind: str) -> dict:
    return (((payload.get("payload") or {}).get(kind) or {}).get("entity")) or {}


class PaymentWebhookHandler:
    def __init__(self, *, gateways=None, verification=None, clock=timezone.now):
        self.gateways = gateways or GatewayResolver()
        self.verification = verification or PaymentVerificationService(gateways=self.gateways)
        self._clock = clock

    def verify_signature(self, *, raw_body: bytes, signature: str | None) -> bool:
        return self.gateways.platform().verify_webhook_signature(raw_body=raw_body, signature=signature)

    def handle(self, payload: dict) -> str:
        event = str(payload.get("event") or "").strip()

        if event == "payment.captured":
            return self._payment_captured(_entity(payload, "payment"))
        if event == "payment.failed":
            return self._payment_failed(_entity(payload, "payment"))
        if event in ("refund.processed", "refund.failed"):
            return self._refund_update(_entity(payload, "refund"), failed=event == "refund.failed")

        logger.info("Webhook event ignored", extra={"event": event})
        return "ignored"

    def _order_for(self, entity: dict) -> Order | None:
        remote_order_id = str(entity.get("order_id") or "").strip()
        if not remote_order_id:
            return None
        return Order.objects.select_related("store").filter(remote_order_id=remote_order_id).first()

    def _payment_captured(self, entity: dict) -> str:
        order = self._order_for(entity)
        if order is None:
            logger.warning("Webhook payment for unknown order", extra={"remote_order_id": entity.get("order_id")})
            return "unknown_order"

        try:
            result = self.verification.mark_paid(
                order=order, remote_payment_id=str(entity.get("id") or "").strip()
            )
        except OrphanedPayment:
            return "orphaned_payment"
        except PaymentStateError as exc:
            logger.warning("Webhook capture not applied", extra={"order_id": str(order.pk), "error": str(exc)})
            return "ignored"

        return "already_paid" if result.already_paid else "paid"

    def _payment_failed(self, entity: dict) -> str:
        order = self._order_for(entity)
        if order is None:
            return "unknown_order"

        reason = str(entity.get("error_description") or "").strip()
        moved = self.verification.mark_failed(order=order, reason=reason)
        return "failed" if moved else "ignored"

    def _refund_update(self, entity: dict, *, failed: bool) -> str:
        remote_refund_id = str(entity.get("id") or "").strip()
        if not remote_refund_id:
            return "ignored"

        qs = Refund.objects.filter(remote_refund_id=remote_refund_id, status=Refund.STATUS_PENDING)
        if failed:
            moved = qs.update(status=Refund.STATUS_FAILED, failure_reason="Reported failed by gateway")
            if moved:
                logger.warning("Refund failed at gateway", extra={"remote_refund_id": remote_refund_id})
        else:
            moved = qs.update(status=Refund.STATUS_PROCESSED, processed_at=self._clock())

        return "refund_updated" if moved else "ignored"
