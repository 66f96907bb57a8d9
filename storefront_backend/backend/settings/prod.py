# backend/settings/prod.py
"""
PATH: backend/settings/prod.py

PRODUCTION SETTINGS

Boot is refused (ImproperlyConfigured) unless:
- SECRET_KEY is a real secret
- ALLOWED_HOSTS, CORS and CSRF origins are set and https-only
- DATABASE_URL points at Postgres
- gateway keys, webhook secret and the store-credential key are present
- carrier credentials exist whenever a carrier backend is enabled
- order mail goes through a real transport

Detached work (carrier booking, notifications) always runs on threads here.
"""

from __future__ import annotations

from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa: F403
from .base import (  # explicit for Ruff (F405)
    BASE_DIR,
    CREDENTIALS_ENCRYPTION_KEY,
    EMAIL_BACKEND,
    MIDDLEWARE,
    PAYMENTS,
    SHIPPING,
    env,
)


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ImproperlyConfigured(message)


DEBUG = False
BACKGROUND_TASKS_EAGER = False

# ----------------------------
# Secrets + hosts
# ----------------------------
SECRET_KEY = (env("SECRET_KEY", default="") or "").strip()
_require(
    bool(SECRET_KEY) and SECRET_KEY != "dev-insecure-change-me",
    "SECRET_KEY must be set to a strong value in production.",
)

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=[])
_require(bool(ALLOWED_HOSTS), "ALLOWED_HOSTS must be set in production.")

# ----------------------------
# Database (row locks + conditional stock updates need Postgres)
# ----------------------------
_db_url = (env("DATABASE_URL", default="") or "").strip()
_require(bool(_db_url), "DATABASE_URL must be set in production.")
_require(not _db_url.startswith("sqlite"), "SQLite is not supported in production; use Postgres.")

DATABASES = {"default": env.db("DATABASE_URL")}
DATABASES["default"]["CONN_MAX_AGE"] = env.int("DB_CONN_MAX_AGE", default=60)

# ----------------------------
# Order pipeline wiring
# ----------------------------
_require(
    bool(PAYMENTS["KEY_ID"] and PAYMENTS["KEY_SECRET"]),
    "PAYMENT_GATEWAY_KEY_ID and PAYMENT_GATEWAY_KEY_SECRET must be set in production.",
)
_require(
    bool(PAYMENTS["WEBHOOK_SECRET"]),
    "PAYMENT_GATEWAY_WEBHOOK_SECRET must be set in production.",
)
# Store credential overrides are unreadable without it.
_require(bool(CREDENTIALS_ENCRYPTION_KEY), "CREDENTIALS_ENCRYPTION_KEY must be set in production.")

if SHIPPING["CARRIER_BACKEND"]:
    _require(
        bool(SHIPPING["EMAIL"] and SHIPPING["PASSWORD"]),
        "SHIPPING_EMAIL and SHIPPING_PASSWORD must be set when a carrier backend is enabled.",
    )

_require(
    not EMAIL_BACKEND.endswith(("console.EmailBackend", "locmem.EmailBackend", "dummy.EmailBackend")),
    "EMAIL_URL must point at a real mail transport in production.",
)

# ----------------------------
# Static files via WhiteNoise (admin + Swagger assets)
# ----------------------------
STATIC_ROOT = env("STATIC_ROOT", default=str(BASE_DIR / "staticfiles"))
MIDDLEWARE.insert(1, "whitenoise.middleware.WhiteNoiseMiddleware")
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# ----------------------------
# TLS behind the proxy
# ----------------------------
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = env.bool("SECURE_SSL_REDIRECT", default=True)
SECURE_HSTS_SECONDS = env.int("SECURE_HSTS_SECONDS", default=3600)
SECURE_HSTS_INCLUDE_SUBDOMAINS = env.bool("SECURE_HSTS_INCLUDE_SUBDOMAINS", default=True)
SECURE_HSTS_PRELOAD = env.bool("SECURE_HSTS_PRELOAD", default=False)
SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = "same-origin"
X_FRAME_OPTIONS = "DENY"

# Admin is the only cookie-session user; the API is JWT.
SESSION_COOKIE_SECURE = CSRF_COOKIE_SECURE = True
SESSION_COOKIE_HTTPONLY = CSRF_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = CSRF_COOKIE_SAMESITE = "Lax"

# ----------------------------
# Storefront origins (https only)
# ----------------------------
CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS", default=[])
CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS", default=[])
CORS_ALLOW_CREDENTIALS = False

for _setting, _origins in (
    ("CORS_ALLOWED_ORIGINS", CORS_ALLOWED_ORIGINS),
    ("CSRF_TRUSTED_ORIGINS", CSRF_TRUSTED_ORIGINS),
):
    _require(bool(_origins), f"{_setting} must be set in production.")
    _require(
        all(o.startswith("https://") for o in _origins),
        f"{_setting} must be https:// in production.",
    )
