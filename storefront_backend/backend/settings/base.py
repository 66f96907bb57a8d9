"""
PATH: backend/settings/base.py

BASE SETTINGS (shared by dev + prod)

Operational maturity:
- Throttling for public checkout / webhook endpoints
- Payment gateway + carrier wiring (swappable backends, dotted paths)
- Per-store credential encryption key
- Background task eager toggle: tests run detached work inline
- Sentry (optional): error visibility in production
"""

from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

import environ
from corsheaders.defaults import default_headers, default_methods

# -----------------------------------------
# BASE DIRECTORY
# -----------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# -----------------------------------------
# TEST MODE DETECTION
# -----------------------------------------
TESTING = "test" in sys.argv or "pytest" in sys.modules

# -----------------------------------------
# ENV (django-environ)
# -----------------------------------------
env = environ.Env(
    DEBUG=(bool, True),
    SECRET_KEY=(str, ""),
    TIME_ZONE=(str, "UTC"),
    ALLOWED_HOSTS=(list, ["localhost", "127.0.0.1", "testserver"]),
    CORS_ALLOWED_ORIGINS=(list, ["http://localhost:3000"]),
    CSRF_TRUSTED_ORIGINS=(list, ["http://localhost:3000"]),
    DATABASE_URL=(str, f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
    # Throttling
    THROTTLE_ANON_RATE=(str, "60/min"),
    THROTTLE_USER_RATE=(str, "600/min"),
    THROTTLE_PUBLIC_WRITE_RATE=(str, "20/min"),
    THROTTLE_WEBHOOK_RATE=(str, "600/min"),
    # Payment gateway (platform credentials)
    PAYMENT_GATEWAY_BACKEND=(str, "payments.gateways.razorpay.RazorpayGateway"),
    PAYMENT_GATEWAY_KEY_ID=(str, ""),
    PAYMENT_GATEWAY_KEY_SECRET=(str, ""),
    PAYMENT_GATEWAY_WEBHOOK_SECRET=(str, ""),
    PAYMENT_GATEWAY_CURRENCY=(str, "INR"),
    PAYMENT_GATEWAY_TIMEOUT_SECONDS=(int, 15),
    PAYMENT_GATEWAY_MAX_RETRIES=(int, 2),
    PAYMENT_GATEWAY_RETRY_BACKOFF_SECONDS=(float, 0.5),
    # Store credential overrides (AES-256-GCM, base64 32 bytes)
    CREDENTIALS_ENCRYPTION_KEY=(str, ""),
    # Carrier
    SHIPPING_CARRIER_BACKEND=(str, ""),
    SHIPPING_API_BASE=(str, "https://apiv2.shiprocket.in/v1/external"),
    SHIPPING_EMAIL=(str, ""),
    SHIPPING_PASSWORD=(str, ""),
    SHIPPING_PICKUP_LOCATION=(str, "Primary"),
    SHIPPING_TIMEOUT_SECONDS=(int, 20),
    SHIPMENT_AUTO_CREATE_MAX_ATTEMPTS=(int, 3),
    SHIPMENT_AUTO_CREATE_BACKOFF_SECONDS=(float, 1.0),
    # Orders
    RESERVATION_TTL_MINUTES=(int, 15),
    # Background tasks run inline under test
    BACKGROUND_TASKS_EAGER=(bool, TESTING),
    # Email
    DEFAULT_FROM_EMAIL=(str, "orders@localhost"),
    EMAIL_URL=(str, "consolemail://"),
    # Sentry (optional; enable by setting SENTRY_DSN)
    SENTRY_DSN=(str, ""),
    SENTRY_ENVIRONMENT=(str, "development"),
    SENTRY_TRACES_SAMPLE_RATE=(float, 0.0),
    SENTRY_SEND_PII=(bool, False),
    LOG_LEVEL=(str, "INFO"),
    ADMIN_PATH=(str, "admin/"),
)

# -----------------------------------------
# LOAD .env
# -----------------------------------------
env_file_1 = BASE_DIR / ".env"
env_file_2 = BASE_DIR.parent / ".env"

if env_file_1.exists():
    env.read_env(str(env_file_1))
elif env_file_2.exists():
    env.read_env(str(env_file_2))

# -----------------------------------------
# CORE SECURITY
# -----------------------------------------
SECRET_KEY = (env("SECRET_KEY") or "dev-insecure-change-me").strip()
DEBUG = env.bool("DEBUG")
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS")
ADMIN_PATH = (env("ADMIN_PATH") or "admin/").strip()

# -----------------------------------------
# I18N / TZ
# -----------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = (env("TIME_ZONE") or "UTC").strip()
USE_I18N = True
USE_TZ = True

# -----------------------------------------
# INSTALLED APPS
# -----------------------------------------
INSTALLED_APPS = [
    "corsheaders",
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "rest_framework_simplejwt",
    "drf_spectacular",
    "django_filters",
    "store.apps.StoreConfig",
    "catalog.apps.CatalogConfig",
    "orders.apps.OrdersConfig",
    "payments.apps.PaymentsConfig",
    "shipping.apps.ShippingConfig",
    "notifications.apps.NotificationsConfig",
]

# -----------------------------------------
# MIDDLEWARE
# -----------------------------------------
MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "backend.urls"
WSGI_APPLICATION = "backend.wsgi.application"
APPEND_SLASH = True

# -----------------------------------------
# TEMPLATES (required for Django admin)
# -----------------------------------------
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [str(BASE_DIR / "templates")],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

# -----------------------------------------
# REST FRAMEWORK
# -----------------------------------------
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": ("rest_framework.permissions.IsAuthenticated",),
    "DEFAULT_FILTER_BACKENDS": ("django_filters.rest_framework.DjangoFilterBackend",),
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": 20,
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "DEFAULT_THROTTLE_CLASSES": (
        "rest_framework.throttling.AnonRateThrottle",
        "rest_framework.throttling.UserRateThrottle",
    ),
    "DEFAULT_THROTTLE_RATES": {
        "anon": env("THROTTLE_ANON_RATE"),
        "user": env("THROTTLE_USER_RATE"),
        "public_write": env("THROTTLE_PUBLIC_WRITE_RATE"),
        "webhook": env("THROTTLE_WEBHOOK_RATE"),
    },
}

if TESTING:
    # Throttle counters share the cache across test cases.
    REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = ()
    REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"].update(public_write="10000/min", webhook="10000/min")

# -----------------------------------------
# SIMPLE JWT
# -----------------------------------------
SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=30),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=1),
    "ROTATE_REFRESH_TOKENS": True,
}

# -----------------------------------------
# DATABASE
# -----------------------------------------
DATABASES = {
    "default": env.db("DATABASE_URL"),
}

# -----------------------------------------
# PAYMENTS
# -----------------------------------------
PAYMENTS = {
    "GATEWAY_BACKEND": (env("PAYMENT_GATEWAY_BACKEND") or "").strip(),
    "KEY_ID": (env("PAYMENT_GATEWAY_KEY_ID") or "").strip(),
    "KEY_SECRET": (env("PAYMENT_GATEWAY_KEY_SECRET") or "").strip(),
    "WEBHOOK_SECRET": (env("PAYMENT_GATEWAY_WEBHOOK_SECRET") or "").strip(),
    "CURRENCY": (env("PAYMENT_GATEWAY_CURRENCY") or "INR").strip(),
    "TIMEOUT_SECONDS": env.int("PAYMENT_GATEWAY_TIMEOUT_SECONDS"),
    "MAX_RETRIES": env.int("PAYMENT_GATEWAY_MAX_RETRIES"),
    "RETRY_BACKOFF_SECONDS": env.float("PAYMENT_GATEWAY_RETRY_BACKOFF_SECONDS"),
}

CREDENTIALS_ENCRYPTION_KEY = (env("CREDENTIALS_ENCRYPTION_KEY") or "").strip()

# -----------------------------------------
# SHIPPING
# -----------------------------------------
SHIPPING = {
    "CARRIER_BACKEND": (env("SHIPPING_CARRIER_BACKEND") or "").strip(),
    "API_BASE": (env("SHIPPING_API_BASE") or "").strip(),
    "EMAIL": (env("SHIPPING_EMAIL") or "").strip(),
    "PASSWORD": (env("SHIPPING_PASSWORD") or "").strip(),
    "PICKUP_LOCATION": (env("SHIPPING_PICKUP_LOCATION") or "Primary").strip(),
    "TIMEOUT_SECONDS": env.int("SHIPPING_TIMEOUT_SECONDS"),
    "AUTO_CREATE_MAX_ATTEMPTS": env.int("SHIPMENT_AUTO_CREATE_MAX_ATTEMPTS"),
    "AUTO_CREATE_BACKOFF_SECONDS": env.float("SHIPMENT_AUTO_CREATE_BACKOFF_SECONDS"),
    "DEFAULT_PACKAGE": {
        "length_cm": 20,
        "breadth_cm": 15,
        "height_cm": 10,
        "weight_kg": 0.5,
    },
}

# -----------------------------------------
# ORDERS
# -----------------------------------------
ORDERS = {
    "RESERVATION_TTL_MINUTES": env.int("RESERVATION_TTL_MINUTES"),
    "REFUND_TIMELINE_MESSAGE": "Your payment will be refunded within 5-7 business days.",
}

BACKGROUND_TASKS_EAGER = env.bool("BACKGROUND_TASKS_EAGER")

# -----------------------------------------
# EMAIL
# -----------------------------------------
DEFAULT_FROM_EMAIL = (env("DEFAULT_FROM_EMAIL") or "orders@localhost").strip()
vars().update(env.email_url("EMAIL_URL"))

# -----------------------------------------
# LOGGING
# -----------------------------------------
LOG_LEVEL = (env("LOG_LEVEL") or "INFO").strip().upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "orders": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "payments": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "shipping": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "notifications": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}

# -----------------------------------------
# SENTRY (optional)
# -----------------------------------------
SENTRY_DSN = (env("SENTRY_DSN") or "").strip()
SENTRY_ENVIRONMENT = (env("SENTRY_ENVIRONMENT") or "development").strip()
SENTRY_TRACES_SAMPLE_RATE = float(env("SENTRY_TRACES_SAMPLE_RATE"))
SENTRY_SEND_PII = env.bool("SENTRY_SEND_PII")

if SENTRY_DSN:
    import sentry_sdk
    from sentry_sdk.integrations.django import DjangoIntegration

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=SENTRY_ENVIRONMENT,
        integrations=[DjangoIntegration()],
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        send_default_pii=SENTRY_SEND_PII,
    )

# -----------------------------------------
# CORS / CSRF
# -----------------------------------------
CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS")
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_METHODS = list(default_methods)
CORS_ALLOW_HEADERS = list(default_headers)

CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS")

# -----------------------------------------
# STATIC FILES
# -----------------------------------------
STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# -----------------------------------------
# SWAGGER
# -----------------------------------------
SPECTACULAR_SETTINGS = {
    "TITLE": "Storefront Orders API",
    "DESCRIPTION": "Checkout, payment verification, fulfillment, cancellation and refunds",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}
