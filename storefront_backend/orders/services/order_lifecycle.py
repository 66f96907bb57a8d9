# orders/services/order_lifecycle.py

"""
ORDER FULFILLMENT LIFECYCLE RULES

This module defines the ONLY allowed fulfillment_status transitions.

DESIGN PRINCIPLES:
- No database writes
- No stock mutation
- No side effects

payment_status is a separate field with its own small table; it is never
derived from fulfillment_status.
"""

from __future__ import annotations

from orders.models import Order
from orders.services.exceptions import InvalidTransition

# ============================================================
# FULFILLMENT STATES
# ============================================================

TERMINAL_STATES = {
    Order.STATUS_RETURNED,
    Order.STATUS_CANCELLED,
}

ALLOWED_TRANSITIONS = {
    Order.STATUS_UNFULFILLED: {
        Order.STATUS_PROCESSING,
        Order.STATUS_PACKED,
        Order.STATUS_SHIPPED,
        Order.STATUS_CANCELLED,
    },
    Order.STATUS_PROCESSING: {
        Order.STATUS_PACKED,
        Order.STATUS_SHIPPED,
        Order.STATUS_CANCELLED,
    },
    Order.STATUS_PACKED: {
        Order.STATUS_SHIPPED,
        Order.STATUS_CANCELLED,
    },
    Order.STATUS_SHIPPED: {
        Order.STATUS_OUT_FOR_DELIVERY,
        Order.STATUS_DELIVERED,
        Order.STATUS_RETURNED,
        Order.STATUS_CANCELLED,
    },
    Order.STATUS_OUT_FOR_DELIVERY: {
        Order.STATUS_DELIVERED,
        Order.STATUS_RETURNED,
    },
    Order.STATUS_DELIVERED: {
        Order.STATUS_RETURNED,
    },
}

# Narrower set for DELETE /orders/{id}: nothing has left the warehouse yet.
CANCELLABLE_STATES = {
    Order.STATUS_UNFULFILLED,
    Order.STATUS_PROCESSING,
    Order.STATUS_PACKED,
}

# Timestamp stamped on entering a state.
TIMESTAMP_FIELDS = {
    Order.STATUS_PACKED: "packed_at",
    Order.STATUS_SHIPPED: "shipped_at",
    Order.STATUS_OUT_FOR_DELIVERY: "out_for_delivery_at",
    Order.STATUS_DELIVERED: "delivered_at",
    Order.STATUS_RETURNED: "returned_at",
    Order.STATUS_CANCELLED: "cancelled_at",
}

# ============================================================
# PAYMENT STATES
# ============================================================

PAYMENT_TRANSITIONS = {
    Order.PAYMENT_STATUS_PENDING: {
        Order.PAYMENT_STATUS_PAID,
        Order.PAYMENT_STATUS_FAILED,
    },
    Order.PAYMENT_STATUS_PAID: {
        Order.PAYMENT_STATUS_REFUNDED,
    },
}


# ============================================================
# DOMAIN RULES
# ============================================================


def allowed_targets(status: str) -> set[str]:
    if status in TERMINAL_STATES:
        return set()
    return set(ALLOWED_TRANSITIONS.get(status, set()))


def can_transition(*, from_status: str, to_status: str) -> bool:
    return to_status in allowed_targets(from_status)


def validate_transition(*, order: Order, target_status: str):
    if not can_transition(from_status=order.fulfillment_status, to_status=target_status):
        raise InvalidTransition(
            current=order.fulfillment_status,
            target=target_status,
            allowed=allowed_targets(order.fulfillment_status),
        )


def can_transition_payment(*, from_status: str, to_status: str) -> bool:
    return to_status in PAYMENT_TRANSITIONS.get(from_status, set())


def earlier_states(status: str) -> set[str]:
    """States strictly before `status` on the happy path (forward-only moves)."""
    order_of_states = [
        Order.STATUS_UNFULFILLED,
        Order.STATUS_PROCESSING,
        Order.STATUS_PACKED,
        Order.STATUS_SHIPPED,
        Order.STATUS_OUT_FOR_DELIVERY,
        Order.STATUS_DELIVERED,
    ]
    if status not in order_of_states:
        return set()
    return set(order_of_states[: order_of_states.index(status)])
