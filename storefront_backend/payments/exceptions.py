# payments/exceptions.py

"""
PAYMENT GATEWAY ERRORS

Raised by gateway adapters and the credential layer. Gateway errors never
mutate local state; the caller decides what to roll back.
"""


class PaymentGatewayError(Exception):
    """Remote payment processor call failed or was rejected."""

    def __init__(self, message: str, *, status_code: int | None = None, retryable: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class GatewayConfigurationError(PaymentGatewayError):
    """Gateway backend or credentials are missing/invalid."""


class CredentialDecryptionError(GatewayConfigurationError):
    """Stored per-store credentials could not be decrypted."""
