# payments/gateways/base.py

"""
PAYMENT GATEWAY CAPABILITY INTERFACE

Vendor-neutral contract consumed by checkout, verification and refunds.
Amounts cross this boundary as Decimal major units (e.g. rupees); adapters
convert to whatever the vendor expects.
"""

from __future__ import annotations

import hashlib
import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class RemoteRefund:
    refund_id: str
    status: str  # vendor status, normalised to "processed" | "pending" | "failed"


def hmac_sha256_hex(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


class PaymentGateway(ABC):
    """Base class for remote payment processors."""

    def __init__(
        self,
        *,
        key_id: str,
        key_secret: str,
        webhook_secret: str = "",
        timeout_seconds: int = 15,
        max_retries: int = 2,
        retry_backoff_seconds: float = 0.5,
    ):
        self.key_id = key_id
        self._key_secret = key_secret
        self._webhook_secret = webhook_secret
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.retry_backoff_seconds = retry_backoff_seconds

    @abstractmethod
    def create_remote_order(
        self,
        *,
        amount: Decimal,
        currency: str,
        receipt: str,
        metadata: dict | None = None,
    ) -> str:
        """Create the processor-side order and return its id."""

    @abstractmethod
    def refund(
        self,
        *,
        remote_payment_id: str,
        amount: Decimal | None = None,
        metadata: dict | None = None,
    ) -> RemoteRefund:
        """Refund a captured payment. amount=None refunds in full."""

    def verify_signature(
        self,
        *,
        remote_order_id: str,
        remote_payment_id: str,
        signature: str | None,
    ) -> bool:
        """
        Client-submitted confirmation check:
        HMAC-SHA256(key_secret, "<order_id>|<payment_id>"), constant-time compare.
        """
        if not signature or not remote_order_id or not remote_payment_id:
            return False
        if not self._key_secret:
            return False

        message = f"{remote_order_id}|{remote_payment_id}".encode("utf-8")
        expected = hmac_sha256_hex(self._key_secret, message)
        return hmac.compare_digest(expected, str(signature).strip())

    def verify_webhook_signature(self, *, raw_body: bytes, signature: str | None) -> bool:
        if not signature or not self._webhook_secret:
            return False
        expected = hmac_sha256_hex(self._webhook_secret, raw_body or b"")
        return hmac.compare_digest(expected, str(signature).strip())
