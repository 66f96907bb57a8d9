# orders/services/pricing.py

"""
ORDER TOTALS (SERVER AUTHORITATIVE)

total = subtotal + shipping - discount + tax

- shipping: store flat rate, waived at/above the free-shipping threshold,
  plus the COD fee for cash-on-delivery
- tax: store.tax_rate percent of subtotal
- discount: capped at subtotal

Computed once at checkout and stored; never re-derived later.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from orders.models import Order

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def _money(v) -> Decimal:
    if v is None or v == "":
        return ZERO
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal


def compute_shipping(*, store, subtotal: Decimal, payment_method: str) -> Decimal:
    threshold = _money(store.free_shipping_threshold)
    if threshold > ZERO and subtotal >= threshold:
        base = ZERO
    else:
        base = _money(store.flat_shipping_rate)

    cod_fee = ZERO
    if payment_method == Order.PAYMENT_METHOD_COD and store.cod_enabled:
        cod_fee = _money(store.cod_fee)

    return _money(base + cod_fee)


def compute_totals(*, store, lines, payment_method: str, discount=None) -> OrderTotals:
    subtotal = _money(sum((line.total_price for line in lines), ZERO))
    shipping = compute_shipping(store=store, subtotal=subtotal, payment_method=payment_method)
    tax = _money(subtotal * _money(store.tax_rate) / Decimal("100"))
    discount_amt = min(max(_money(discount), ZERO), subtotal)

    total = max(_money(subtotal + shipping - discount_amt + tax), ZERO)

    return OrderTotals(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        discount=discount_amt,
        total=total,
    )
