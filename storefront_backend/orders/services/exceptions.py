# orders/services/exceptions.py

"""
ORDER PIPELINE ERRORS

Centralized domain errors for checkout, verification, fulfillment,
cancellation and refunds. Views map each class to one HTTP status.
"""


class OrderPipelineError(Exception):
    """Base exception for all order pipeline failures."""


class StoreUnavailable(OrderPipelineError):
    """Store is missing or inactive."""


class PaymentMethodUnavailable(OrderPipelineError):
    """Requested payment method is disabled for the store."""


class CartValidationError(OrderPipelineError):
    """Cart rejected as a whole; issues lists one entry per offending line."""

    def __init__(self, issues: list[dict]):
        self.issues = list(issues)
        super().__init__(f"Cart has {len(self.issues)} invalid item(s)")


class InventoryUnavailable(OrderPipelineError):
    """Stock could not be reserved for one or more lines."""

    def __init__(self, message: str, *, product_id=None, variant_id=None, requested: int | None = None):
        super().__init__(message)
        self.product_id = product_id
        self.variant_id = variant_id
        self.requested = requested


class SignatureMismatch(OrderPipelineError):
    """Payment confirmation signature did not verify."""


class OrderMismatch(OrderPipelineError):
    """Payment confirmation belongs to a different remote order."""


class PaymentStateError(OrderPipelineError):
    """Order payment_status does not allow the requested operation."""


class OrphanedPayment(PaymentStateError):
    """Gateway captured money for an order that no longer accepts payment."""

    def __init__(self, message: str, *, remote_payment_id: str):
        super().__init__(message)
        self.remote_payment_id = remote_payment_id


class InvalidTransition(OrderPipelineError):
    """Fulfillment status change not allowed by the lifecycle table."""

    def __init__(self, *, current: str, target: str, allowed):
        self.current = current
        self.target = target
        self.allowed = sorted(allowed)
        allowed_txt = ", ".join(self.allowed) or "none (terminal)"
        super().__init__(
            f"Cannot transition from '{current}' to '{target}'. Allowed: {allowed_txt}"
        )


class RefundError(OrderPipelineError):
    """Base for refund rejections."""


class RefundNotAllowed(RefundError):
    """Order is not in a refundable state."""


class RefundLimitExceeded(RefundError):
    """Requested amount exceeds the remaining refundable balance."""

    def __init__(self, message: str, *, refundable):
        super().__init__(message)
        self.refundable = refundable
