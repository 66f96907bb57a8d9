# backend/settings/dev.py
"""
PATH: backend/settings/dev.py

LOCAL DEVELOPMENT + TEST SETTINGS

- SQLite unless DATABASE_URL says otherwise
- order mail printed to the console
- pipeline loggers at DEBUG
- no carrier unless SHIPPING_CARRIER_BACKEND is exported
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING, env  # explicit for Ruff (F405)

DEBUG = True

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["localhost", "127.0.0.1", "testserver"])

# Storefront dev server
CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS", default=["http://localhost:3000"])
CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS", default=["http://localhost:3000"])
CORS_ALLOW_CREDENTIALS = True

EMAIL_BACKEND = env("DEV_EMAIL_BACKEND", default="django.core.mail.backends.console.EmailBackend")

_pipeline_level = env("LOG_LEVEL", default="DEBUG").upper()
for _name in ("orders", "payments", "shipping", "notifications"):
    LOGGING["loggers"][_name]["level"] = _pipeline_level
