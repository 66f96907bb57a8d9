# payments/gateways/razorpay.py

"""
RAZORPAY-STYLE GATEWAY (HTTP, urllib)

- Basic auth with key_id:key_secret
- Amounts sent in minor units (paise)
- Every transport failure (URLError, dropped sockets, bad HTTP framing) becomes PaymentGatewayError
- Order creation is retried on transport errors / 5xx with backoff
- Refunds are a single attempt: a retried refund can double-pay
"""

from __future__ import annotations

import base64
import json
import logging
import time
from http.client import HTTPException
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from payments.exceptions import GatewayConfigurationError, PaymentGatewayError
from payments.gateways.base import PaymentGateway, RemoteRefund

logger = logging.getLogger(__name__)

RAZORPAY_BASE = "https://api.razorpay.com/v1"

_REFUND_STATUS_MAP = {
    "processed": "processed",
    "pending": "pending",
    "created": "pending",
    "failed": "failed",
}


def _to_minor_units(amount: Decimal) -> int:
    try:
        major = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValueError("amount must be a valid Decimal") from exc
    minor = (major * Decimal("100")).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(minor)


def _safe_preview(text: str, limit: int = 500) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


def _parse_json_or_text(raw: str) -> dict[str, Any]:
    raw = raw or ""
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {"kind": "text", "raw": raw}
    if isinstance(parsed, dict):
        return {"kind": "json", "json": parsed, "raw": raw}
    return {"kind": "json_non_object", "json": parsed, "raw": raw}


class RazorpayGateway(PaymentGateway):
    api_base = RAZORPAY_BASE

    def __init__(self, *, sleep=time.sleep, **kwargs):
        super().__init__(**kwargs)
        self._sleep = sleep

    # --------------------------------------------------
    # TRANSPORT
    # --------------------------------------------------

    def _auth_header(self) -> str:
        if not self.key_id or not self._key_secret:
            raise GatewayConfigurationError("Payment gateway credentials are not configured.")
        token = base64.b64encode(f"{self.key_id}:{self._key_secret}".encode("utf-8"))
        return f"Basic {token.decode('ascii')}"

    def _request_json(self, method: str, path: str, *, body: dict | None = None) -> dict[str, Any]:
        data = None
        if body is not None:
            data = json.dumps(body, ensure_ascii=False).encode("utf-8")

        req = Request(
            f"{self.api_base}{path}",
            data=data,
            headers={
                "Authorization": self._auth_header(),
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            method=method,
        )

        try:
            with urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8", errors="replace")
                parsed_any = _parse_json_or_text(raw)
        except HTTPError as e:
            try:
                raw = e.read().decode("utf-8", errors="replace")
            except OSError:
                raw = ""
            parsed_any = _parse_json_or_text(raw)

            if parsed_any.get("kind") == "json":
                err = (parsed_any.get("json") or {}).get("error") or {}
                msg = err.get("description") if isinstance(err, dict) else str(err)
                msg = msg or "Gateway rejected request"
            else:
                msg = _safe_preview(parsed_any.get("raw") or str(e))

            raise PaymentGatewayError(
                f"Gateway HTTPError: {e.code} {msg}",
                status_code=e.code,
                retryable=e.code >= 500,
            ) from e
        except URLError as e:
            raise PaymentGatewayError(f"Gateway URLError: {e}", retryable=True) from e
        except TimeoutError as e:
            raise PaymentGatewayError("Gateway request timed out", retryable=True) from e
        except (HTTPException, OSError) as e:
            # Dropped connections and truncated responses surface here, not as URLError.
            raise PaymentGatewayError(f"Gateway connection error: {e!r}", retryable=True) from e

        if parsed_any.get("kind") != "json":
            raise PaymentGatewayError(
                f"Gateway returned non-JSON: {_safe_preview(parsed_any.get('raw') or '')}"
            )

        return parsed_any.get("json") or {}

    def _request_with_retry(self, method: str, path: str, *, body: dict | None = None) -> dict[str, Any]:
        attempt = 0
        while True:
            try:
                return self._request_json(method, path, body=body)
            except PaymentGatewayError as exc:
                if not exc.retryable or attempt >= self.max_retries:
                    raise
                delay = self.retry_backoff_seconds * (2 ** attempt)
                attempt += 1
                logger.warning(
                    "Gateway call failed, retrying",
                    extra={"path": path, "attempt": attempt, "delay": delay},
                )
                self._sleep(delay)

    # --------------------------------------------------
    # CAPABILITIES
    # --------------------------------------------------

    def create_remote_order(self, *, amount, currency, receipt, metadata=None) -> str:
        payload: dict = {
            "amount": _to_minor_units(amount),
            "currency": str(currency).upper(),
            "receipt": str(receipt)[:40],
        }
        if metadata:
            payload["notes"] = {k: str(v) for k, v in metadata.items()}

        parsed = self._request_with_retry("POST", "/orders", body=payload)

        remote_order_id = str(parsed.get("id") or "").strip()
        if not remote_order_id:
            raise PaymentGatewayError("Gateway order response missing id")

        logger.info(
            "Remote payment order created",
            extra={"receipt": receipt, "remote_order_id": remote_order_id},
        )
        return remote_order_id

    def refund(self, *, remote_payment_id, amount=None, metadata=None) -> RemoteRefund:
        if not remote_payment_id:
            raise PaymentGatewayError("remote_payment_id is required for refunds")

        payload: dict = {}
        if amount is not None:
            payload["amount"] = _to_minor_units(amount)
        if metadata:
            payload["notes"] = {k: str(v) for k, v in metadata.items()}

        parsed = self._request_json(
            "POST", f"/payments/{remote_payment_id}/refund", body=payload
        )

        refund_id = str(parsed.get("id") or "").strip()
        if not refund_id:
            raise PaymentGatewayError("Gateway refund response missing id")

        status = _REFUND_STATUS_MAP.get(str(parsed.get("status") or "").lower(), "pending")
        logger.info(
            "Remote refund issued",
            extra={"remote_payment_id": remote_payment_id, "refund_id": refund_id, "status": status},
        )
        return RemoteRefund(refund_id=refund_id, status=status)
