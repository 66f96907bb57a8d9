# shipping/exceptions.py

"""
CARRIER ERRORS

Raised by carrier adapters. ShipmentAutoCreator retries them up to its
bound and then escalates; they never fail an order.
"""


class ShipmentCreationError(Exception):
    """Carrier could not book (or schedule/track) a shipment."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class CarrierConfigurationError(ShipmentCreationError):
    """Carrier backend or credentials are missing/invalid."""
