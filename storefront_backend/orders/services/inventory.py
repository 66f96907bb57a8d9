# orders/services/inventory.py

"""
INVENTORY RESERVATION MANAGER

Hard rules:
- Stock moves ONLY through conditional updates:
    UPDATE ... SET quantity = quantity - q WHERE id = ? AND quantity >= q
  and the affected-row count is the success signal. Two concurrent
  checkouts can never both take the last unit.
- reserve() is all-or-nothing per order (own savepoint).
- Each reservation row changes status through a guarded update keyed on its
  current status, so stock is handed back at most once per line.

Lifecycle per row:
    HELD --commit--> COMMITTED --restore--> RESTORED
    HELD --release--> RELEASED
"""

from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from catalog.models import Product, ProductVariant
from orders.models import InventoryReservation
from orders.services.exceptions import InventoryUnavailable

logger = logging.getLogger(__name__)


def _default_ttl_minutes() -> int:
    cfg = getattr(settings, "ORDERS", {}) or {}
    return int(cfg.get("RESERVATION_TTL_MINUTES", 15))


def _stock_model(variant_id):
    return ProductVariant if variant_id else Product


def decrement_stock(*, product_id, variant_id, quantity: int) -> bool:
    model = _stock_model(variant_id)
    pk = variant_id or product_id
    updated = model.objects.filter(pk=pk, quantity__gte=quantity).update(
        quantity=F("quantity") - quantity
    )
    return updated == 1


def increment_stock(*, product_id, variant_id, quantity: int) -> None:
    model = _stock_model(variant_id)
    pk = variant_id or product_id
    model.objects.filter(pk=pk).update(quantity=F("quantity") + quantity)


class InventoryReservationManager:
    def __init__(self, *, ttl_minutes: int | None = None, clock=timezone.now):
        self.ttl_minutes = ttl_minutes if ttl_minutes is not None else _default_ttl_minutes()
        self._clock = clock

    # --------------------------------------------------
    # RESERVE
    # --------------------------------------------------

    def reserve(self, *, order, lines) -> list[InventoryReservation]:
        """
        Take a hold for every stock-tracked line or none at all.
        Raises InventoryUnavailable naming the first line that could not be held.
        """
        now = self._clock()
        expires_at = now + timedelta(minutes=self.ttl_minutes)
        created: list[InventoryReservation] = []

        with transaction.atomic():
            for line in lines:
                if not line.tracks_stock:
                    continue

                variant_id = line.variant.pk if line.variant is not None else None
                if not decrement_stock(
                    product_id=line.product.pk,
                    variant_id=variant_id,
                    quantity=line.quantity,
                ):
                    logger.info(
                        "Reservation rejected: insufficient stock",
                        extra={
                            "order_id": str(order.pk),
                            "product_id": str(line.product.pk),
                            "variant_id": str(variant_id) if variant_id else None,
                            "requested": line.quantity,
                        },
                    )
                    # Leaving the savepoint via exception undoes holds taken so far.
                    raise InventoryUnavailable(
                        f"Insufficient stock for {line.title}",
                        product_id=str(line.product.pk),
                        variant_id=str(variant_id) if variant_id else None,
                        requested=line.quantity,
                    )

                created.append(
                    InventoryReservation.objects.create(
                        order=order,
                        product_id=line.product.pk,
                        variant_id=variant_id,
                        quantity=line.quantity,
                        status=InventoryReservation.STATUS_HELD,
                        expires_at=expires_at,
                    )
                )

        logger.info(
            "Inventory reserved",
            extra={"order_id": str(order.pk), "lines": len(created)},
        )
        return created

    # --------------------------------------------------
    # COMMIT
    # --------------------------------------------------

    def commit(self, *, order) -> int:
        """HELD -> COMMITTED. Stock was taken at reserve time, so no stock write."""
        committed = InventoryReservation.objects.filter(
            order=order,
            status=InventoryReservation.STATUS_HELD,
        ).update(
            status=InventoryReservation.STATUS_COMMITTED,
            resolved_at=self._clock(),
        )
        logger.info(
            "Reservation committed",
            extra={"order_id": str(order.pk), "lines": committed},
        )
        return committed

    # --------------------------------------------------
    # RELEASE / RESTORE
    # --------------------------------------------------

    def _give_back(self, *, order, from_status: str, to_status: str) -> int:
        returned = 0
        with transaction.atomic():
            rows = list(
                InventoryReservation.objects.filter(order=order, status=from_status)
            )
            for row in rows:
                moved = InventoryReservation.objects.filter(
                    pk=row.pk, status=from_status
                ).update(status=to_status, resolved_at=self._clock())
                if moved != 1:
                    # Another caller already handed this line back.
                    continue
                increment_stock(
                    product_id=row.product_id,
                    variant_id=row.variant_id,
                    quantity=row.quantity,
                )
                returned += 1
        return returned

    def release(self, *, order) -> int:
        """Return held (uncommitted) stock. Used on payment failure, expiry, cancellation."""
        released = self._give_back(
            order=order,
            from_status=InventoryReservation.STATUS_HELD,
            to_status=InventoryReservation.STATUS_RELEASED,
        )
        if released:
            logger.info(
                "Reservation released",
                extra={"order_id": str(order.pk), "lines": released},
            )
        return released

    def restore(self, *, order) -> int:
        """Return committed stock. Inverse of commit, used on cancellation and full refunds."""
        restored = self._give_back(
            order=order,
            from_status=InventoryReservation.STATUS_COMMITTED,
            to_status=InventoryReservation.STATUS_RESTORED,
        )
        if restored:
            logger.info(
                "Inventory restored",
                extra={"order_id": str(order.pk), "lines": restored},
            )
        return restored

    def restore_all(self, *, order) -> int:
        return self.restore(order=order) + self.release(order=order)

    # --------------------------------------------------
    # EXPIRY
    # --------------------------------------------------

    def expired_order_ids(self, *, now=None) -> list:
        now = now or self._clock()
        return list(
            InventoryReservation.objects.filter(
                status=InventoryReservation.STATUS_HELD,
                expires_at__lte=now,
            )
            .order_by()
            .values_list("order_id", flat=True)
            .distinct()
        )
