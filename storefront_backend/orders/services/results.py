# orders/services/results.py

"""
EXPLICIT RESULT TYPES

Returned at boundaries where the caller decides whether to continue:
gateway refunds inside cancellation, each cancellation step, verification.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class VerificationResult:
    order_id: str
    order_number: str
    payment_status: str
    fulfillment_status: str
    already_paid: bool = False


@dataclass(frozen=True)
class RefundOutcome:
    ok: bool
    refund_id: str | None = None
    remote_refund_id: str = ""
    status: str = ""
    amount: Decimal = Decimal("0.00")
    fully_refunded: bool = False
    error: str = ""


@dataclass(frozen=True)
class StepOutcome:
    name: str
    ok: bool
    skipped: bool = False
    detail: str = ""


@dataclass
class CancellationResult:
    order_id: str
    cancelled: bool
    already_cancelled: bool = False
    refund_issued: bool = False
    refund_id: str | None = None
    inventory_restored: bool = False
    steps: list[StepOutcome] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        return [
            f"{s.name}: {s.detail}" if s.detail else s.name
            for s in self.steps
            if not s.ok and not s.skipped
        ]
