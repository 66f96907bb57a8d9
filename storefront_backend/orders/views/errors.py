# orders/views/errors.py

from rest_framework import status
from rest_framework.response import Response

from orders.models import Order
from orders.services.exceptions import (
    CartValidationError,
    InvalidTransition,
    InventoryUnavailable,
    OrderMismatch,
    OrderPipelineError,
    PaymentMethodUnavailable,
    PaymentStateError,
    RefundLimitExceeded,
    RefundNotAllowed,
    SignatureMismatch,
    StoreUnavailable,
)
from payments.exceptions import PaymentGatewayError


# ======================================================
# API ERROR NORMALIZATION
# ======================================================

def error_response(*, code: str, message: str, http_status: int, details=None):
    """
    Canonical API error response.
    """
    body = {"code": code, "message": message}
    if details is not None:
        body["details"] = details
    return Response({"error": body}, status=http_status)


def validation_error_response(errors):
    return error_response(
        code="validation_error",
        message="Invalid request",
        http_status=status.HTTP_400_BAD_REQUEST,
        details=errors,
    )


def pipeline_error_response(exc: Exception):
    if isinstance(exc, CartValidationError):
        return error_response(
            code="cart_invalid",
            message="Some items in your cart are unavailable",
            http_status=status.HTTP_400_BAD_REQUEST,
            details=exc.issues,
        )
    if isinstance(exc, StoreUnavailable):
        return error_response(code="store_not_found", message=str(exc), http_status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, PaymentMethodUnavailable):
        return error_response(
            code="payment_method_unavailable", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST
        )
    if isinstance(exc, InventoryUnavailable):
        return error_response(
            code="inventory_unavailable",
            message=str(exc),
            http_status=status.HTTP_409_CONFLICT,
            details={
                "product_id": exc.product_id,
                "variant_id": exc.variant_id,
                "requested": exc.requested,
            },
        )
    if isinstance(exc, (SignatureMismatch, OrderMismatch)):
        # Never say which check failed.
        return error_response(
            code="payment_verification_failed",
            message="Payment verification failed",
            http_status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, PaymentStateError):
        return error_response(code="payment_state_conflict", message=str(exc), http_status=status.HTTP_409_CONFLICT)
    if isinstance(exc, InvalidTransition):
        return error_response(
            code="invalid_transition",
            message=str(exc),
            http_status=status.HTTP_400_BAD_REQUEST,
            details={"current": exc.current, "target": exc.target, "allowed": exc.allowed},
        )
    if isinstance(exc, RefundLimitExceeded):
        return error_response(
            code="refund_limit_exceeded",
            message=str(exc),
            http_status=status.HTTP_409_CONFLICT,
            details={"refundable": str(exc.refundable)},
        )
    if isinstance(exc, RefundNotAllowed):
        return error_response(code="refund_not_allowed", message=str(exc), http_status=status.HTTP_409_CONFLICT)
    if isinstance(exc, PaymentGatewayError):
        return error_response(
            code="payment_gateway_error",
            message="Payment gateway is unavailable. Please try again.",
            http_status=status.HTTP_502_BAD_GATEWAY,
        )
    if isinstance(exc, Order.DoesNotExist):
        return error_response(code="not_found", message="Order not found", http_status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, OrderPipelineError):
        return error_response(code="order_error", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)
    raise exc


HANDLED_ERRORS = (OrderPipelineError, PaymentGatewayError, Order.DoesNotExist)
