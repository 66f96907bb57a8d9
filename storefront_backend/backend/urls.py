# backend/urls.py
"""
PROJECT URLS

Everything is mounted under /api/:

    /api/                          index of the routes below
    /api/health/                   readiness probe (database + pipeline wiring)
    /api/schema/, /api/docs/       OpenAPI document and Swagger UI
    /api/auth/jwt/create|refresh/  merchant tokens
    /api/orders/...                order pipeline (see orders/urls.py)

The admin site is mounted at settings.ADMIN_PATH (default "admin/").
"""

from __future__ import annotations

from django.conf import settings
from django.contrib import admin
from django.db import connections
from django.db.utils import OperationalError
from django.urls import include, path
from django.views.generic import RedirectView
from drf_spectacular.utils import extend_schema
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

ROUTE_INDEX = {
    "orders": "/api/orders/",
    "checkout": "/api/orders/",
    "verify_payment": "/api/orders/verify-payment/",
    "payment_webhook": "/api/orders/webhooks/payment/",
    "jwt_create": "/api/auth/jwt/create/",
    "jwt_refresh": "/api/auth/jwt/refresh/",
    "schema": "/api/schema/",
    "docs": "/api/docs/",
    "health": "/api/health/",
}


@extend_schema(responses={200: dict})
@api_view(["GET"])
@permission_classes([AllowAny])
def api_root(request):
    return Response({"service": "storefront-orders", "routes": ROUTE_INDEX})


def _database_ok() -> tuple[bool, str]:
    try:
        with connections["default"].cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except OperationalError as exc:
        return False, str(exc)
    return True, ""


@extend_schema(responses={200: dict, 503: dict})
@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """
    Readiness probe.

    Only the database decides the HTTP status. Gateway and carrier wiring
    are reported so a misconfigured deploy is visible without failing the
    probe (checkout still works for COD without a gateway).
    """
    db_ok, db_error = _database_ok()
    payments = getattr(settings, "PAYMENTS", {}) or {}
    shipping = getattr(settings, "SHIPPING", {}) or {}

    body = {
        "status": "ok" if db_ok else "degraded",
        "db": "ok" if db_ok else "down",
        "payment_gateway": "configured" if payments.get("KEY_ID") else "missing",
        "carrier": "enabled" if shipping.get("CARRIER_BACKEND") else "disabled",
    }
    if not db_ok:
        body["error"] = db_error
        return Response(body, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(body)


ADMIN_PATH = getattr(settings, "ADMIN_PATH", "admin/").rstrip("/") + "/"

api_urlpatterns = [
    path("", api_root, name="api-root"),
    path("health/", health_check, name="health-check"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("auth/jwt/create/", TokenObtainPairView.as_view(), name="jwt-create"),
    path("auth/jwt/refresh/", TokenRefreshView.as_view(), name="jwt-refresh"),
    path("orders/", include("orders.urls")),
]

urlpatterns = [
    path(ADMIN_PATH, admin.site.urls),
    path("", RedirectView.as_view(url="/api/docs/", permanent=False), name="root"),
    path("api/", include(api_urlpatterns)),
]
