# shipping/carriers/base.py

"""
CARRIER CAPABILITY INTERFACE

create_shipment / schedule_pickup / track, vendor-neutral. The concrete
adapter is settings.SHIPPING["CARRIER_BACKEND"]; an empty backend means
auto-creation is disabled (self-delivery).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal

from django.conf import settings
from django.utils.module_loading import import_string

from shipping.exceptions import CarrierConfigurationError


@dataclass(frozen=True)
class ShipmentRequest:
    order_id: str
    order_number: str
    order_date: str
    customer_name: str
    customer_email: str
    customer_phone: str
    address: dict
    items: list
    payment_mode: str  # "prepaid" | "cod"
    order_value: Decimal
    pickup_location: str = "Primary"
    length_cm: float = 20
    breadth_cm: float = 15
    height_cm: float = 10
    weight_kg: float = 0.5


@dataclass(frozen=True)
class ShipmentBooking:
    shipment_id: str
    awb_code: str = ""
    courier_name: str = ""
    tracking_url: str = ""


@dataclass(frozen=True)
class TrackingInfo:
    awb_code: str
    status: str
    events: list = field(default_factory=list)


class CarrierAdapter(ABC):
    @classmethod
    def from_settings(cls, cfg: dict) -> "CarrierAdapter":
        return cls()

    @abstractmethod
    def create_shipment(self, request: ShipmentRequest) -> ShipmentBooking:
        ...

    @abstractmethod
    def schedule_pickup(self, shipment_id: str) -> dict:
        ...

    @abstractmethod
    def track(self, awb_code: str) -> TrackingInfo:
        ...


def _shipping_cfg() -> dict:
    cfg = getattr(settings, "SHIPPING", {}) or {}
    return cfg if isinstance(cfg, dict) else {}


def load_carrier() -> CarrierAdapter | None:
    backend = (_shipping_cfg().get("CARRIER_BACKEND") or "").strip()
    if not backend:
        return None
    try:
        carrier_class = import_string(backend)
    except ImportError as exc:
        raise CarrierConfigurationError(f"Cannot import carrier backend {backend!r}") from exc
    return carrier_class.from_settings(_shipping_cfg())
