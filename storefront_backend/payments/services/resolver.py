# payments/services/resolver.py

"""
GATEWAY RESOLVER

Builds a PaymentGateway for a store:
- store override (key id + decrypted secret) when both are set
- platform credentials from settings.PAYMENTS otherwise

The concrete class is settings.PAYMENTS["GATEWAY_BACKEND"] (dotted path)
unless one is injected.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.utils.module_loading import import_string

from payments.exceptions import GatewayConfigurationError
from payments.gateways.base import PaymentGateway
from payments.services.credentials import decrypt_secret

logger = logging.getLogger(__name__)


def _payments_cfg() -> dict:
    cfg = getattr(settings, "PAYMENTS", {}) or {}
    return cfg if isinstance(cfg, dict) else {}


def load_gateway_class():
    backend = (_payments_cfg().get("GATEWAY_BACKEND") or "").strip()
    if not backend:
        raise GatewayConfigurationError("PAYMENTS['GATEWAY_BACKEND'] is not configured.")
    try:
        gateway_class = import_string(backend)
    except ImportError as exc:
        raise GatewayConfigurationError(f"Cannot import gateway backend {backend!r}") from exc

    if not (isinstance(gateway_class, type) and issubclass(gateway_class, PaymentGateway)):
        raise GatewayConfigurationError(f"{backend!r} is not a PaymentGateway")
    return gateway_class


class GatewayResolver:
    def __init__(self, *, gateway_class=None):
        self._gateway_class = gateway_class

    def _build(self, *, key_id: str, key_secret: str) -> PaymentGateway:
        cfg = _payments_cfg()
        gateway_class = self._gateway_class or load_gateway_class()
        return gateway_class(
            key_id=key_id,
            key_secret=key_secret,
            webhook_secret=cfg.get("WEBHOOK_SECRET", ""),
            timeout_seconds=cfg.get("TIMEOUT_SECONDS", 15),
            max_retries=cfg.get("MAX_RETRIES", 2),
            retry_backoff_seconds=cfg.get("RETRY_BACKOFF_SECONDS", 0.5),
        )

    def platform(self) -> PaymentGateway:
        cfg = _payments_cfg()
        return self._build(
            key_id=(cfg.get("KEY_ID") or "").strip(),
            key_secret=(cfg.get("KEY_SECRET") or "").strip(),
        )

    def for_store(self, store) -> PaymentGateway:
        if store is not None and store.has_gateway_override:
            # Decrypted per call; the plaintext is never cached.
            secret = decrypt_secret(store.gateway_key_secret_encrypted)
            logger.debug("Using store gateway credentials", extra={"store_id": str(store.id)})
            return self._build(key_id=store.gateway_key_id.strip(), key_secret=secret)
        return self.platform()
