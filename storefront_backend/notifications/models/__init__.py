# notifications/models/__init__.py

from .notification import Notification

__all__ = ["Notification"]
