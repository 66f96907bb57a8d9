# shipping/models/__init__.py

from .shipment_attempt import ShipmentAttempt

__all__ = ["ShipmentAttempt"]
