# shipping/carriers/__init__.py

from .base import (
    CarrierAdapter,
    ShipmentBooking,
    ShipmentRequest,
    TrackingInfo,
    load_carrier,
)

__all__ = [
    "CarrierAdapter",
    "ShipmentBooking",
    "ShipmentRequest",
    "TrackingInfo",
    "load_carrier",
]
