# payments/gateways/__init__.py

from .base import PaymentGateway, RemoteRefund

__all__ = ["PaymentGateway", "RemoteRefund"]
