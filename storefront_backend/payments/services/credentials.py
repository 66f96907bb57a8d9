# payments/services/credentials.py

"""
STORE CREDENTIAL ENCRYPTION (AES-256-GCM)

Stored format (base64): iv(12) || ciphertext || tag(16)
Key: settings.CREDENTIALS_ENCRYPTION_KEY, base64 of exactly 32 bytes.
"""

from __future__ import annotations

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from django.conf import settings

from payments.exceptions import CredentialDecryptionError, GatewayConfigurationError

IV_LENGTH = 12
KEY_LENGTH = 32


def _load_key(key: str | None = None) -> bytes:
    raw_key = (key if key is not None else getattr(settings, "CREDENTIALS_ENCRYPTION_KEY", "")) or ""
    raw_key = raw_key.strip()
    if not raw_key:
        raise GatewayConfigurationError("CREDENTIALS_ENCRYPTION_KEY is not configured.")

    try:
        decoded = base64.b64decode(raw_key, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise GatewayConfigurationError("CREDENTIALS_ENCRYPTION_KEY must be base64.") from exc

    if len(decoded) != KEY_LENGTH:
        raise GatewayConfigurationError(
            f"CREDENTIALS_ENCRYPTION_KEY must decode to {KEY_LENGTH} bytes."
        )
    return decoded


def generate_key() -> str:
    return base64.b64encode(AESGCM.generate_key(bit_length=256)).decode("ascii")


def encrypt_secret(plaintext: str, *, key: str | None = None) -> str:
    aesgcm = AESGCM(_load_key(key))
    iv = os.urandom(IV_LENGTH)
    sealed = aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
    return base64.b64encode(iv + sealed).decode("ascii")


def decrypt_secret(token: str, *, key: str | None = None) -> str:
    aesgcm = AESGCM(_load_key(key))
    try:
        raw = base64.b64decode((token or "").strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise CredentialDecryptionError("Stored credential is not valid base64.") from exc

    if len(raw) < IV_LENGTH + 16:
        raise CredentialDecryptionError("Stored credential is truncated.")

    try:
        plaintext = aesgcm.decrypt(raw[:IV_LENGTH], raw[IV_LENGTH:], None)
    except InvalidTag as exc:
        raise CredentialDecryptionError("Stored credential failed authentication.") from exc

    return plaintext.decode("utf-8")
