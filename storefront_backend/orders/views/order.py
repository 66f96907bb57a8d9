# orders/views/order.py

"""
ORDERS API

Public (storefront, anonymous):
- POST /api/orders/                     checkout
- POST /api/orders/verify-payment/      client-side payment confirmation

Merchant (JWT, scoped to stores the caller owns; staff see all):
- GET    /api/orders/
- GET    /api/orders/{id}/
- PATCH  /api/orders/{id}/              status transition and/or tracking
- DELETE /api/orders/{id}/              cancel (refund + restock)
- POST   /api/orders/{id}/refund/
- GET    /api/orders/{id}/refunds/
- POST   /api/orders/{id}/create-shipment/

Views stay thin: parse, call one service, map the result.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from orders.filters import OrderFilter
from orders.models import Order
from orders.serializers.commands import (
    CancelCommandSerializer,
    CheckoutCommandSerializer,
    OrderStatusUpdateSerializer,
    RefundCommandSerializer,
    VerifyPaymentCommandSerializer,
)
from orders.serializers.read import OrderSerializer, RefundSerializer
from orders.services.cancellation_orchestrator import CancellationOrchestrator
from orders.services.checkout_orchestrator import CheckoutOrchestrator
from orders.services.ledger import OrderLedger
from orders.services.order_lifecycle import CANCELLABLE_STATES
from orders.services.payment_verification import PaymentVerificationService
from orders.services.refund_service import RefundService
from orders.views.errors import (
    HANDLED_ERRORS,
    error_response,
    pipeline_error_response,
    validation_error_response,
)
from orders.views.throttles import PublicWriteThrottle
from shipping.services.auto_creator import NOT_SHIPPABLE, ShipmentAutoCreator

logger = logging.getLogger(__name__)


def _cancellation_body(result) -> dict:
    return {
        "order_id": result.order_id,
        "cancelled": result.cancelled,
        "already_cancelled": result.already_cancelled,
        "refunded": result.refund_issued,
        "refund_id": result.refund_id,
        "inventory_restored": result.inventory_restored,
        "warnings": result.warnings,
    }


class OrderViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = OrderFilter
    lookup_value_regex = r"[0-9a-fA-F-]{36}"

    def get_queryset(self):
        qs = Order.objects.select_related("store").prefetch_related("items").order_by("-created_at")
        user = self.request.user
        if not user.is_authenticated:
            return qs.none()
        if user.is_staff:
            return qs
        return qs.filter(store__owner=user)

    def get_permissions(self):
        if self.action in ("create", "verify_payment"):
            return [AllowAny()]
        return super().get_permissions()

    def get_throttles(self):
        if self.action in ("create", "verify_payment"):
            return [PublicWriteThrottle()]
        return super().get_throttles()

    # --------------------------------------------------
    # CHECKOUT
    # --------------------------------------------------
    @extend_schema(request=CheckoutCommandSerializer, responses={201: dict})
    def create(self, request, *args, **kwargs):
        s = CheckoutCommandSerializer(data=request.data)
        if not s.is_valid():
            return validation_error_response(s.errors)
        data = s.validated_data

        try:
            result = CheckoutOrchestrator().checkout(
                store_id=data["store_id"],
                items=data["items"],
                customer=dict(data["customer"]),
                shipping_address=dict(data["shipping_address"]),
                payment_method=data["payment_method"],
                notes=data.get("notes", ""),
            )
        except HANDLED_ERRORS as exc:
            return pipeline_error_response(exc)

        return Response(
            {
                "order_id": result.order_id,
                "order_number": result.order_number,
                "total": str(result.total),
                "currency": result.currency,
                "payment_method": result.payment_method,
                "payment_status": result.payment_status,
                "fulfillment_status": result.fulfillment_status,
                "remote_order_id": result.remote_order_id or None,
                "key_id": result.key_id or None,
            },
            status=status.HTTP_201_CREATED,
        )

    # --------------------------------------------------
    # PAYMENT VERIFICATION
    # --------------------------------------------------
    @extend_schema(request=VerifyPaymentCommandSerializer, responses={200: dict})
    @action(detail=False, methods=["post"], url_path="verify-payment")
    def verify_payment(self, request):
        s = VerifyPaymentCommandSerializer(data=request.data)
        if not s.is_valid():
            return validation_error_response(s.errors)
        data = s.validated_data

        try:
            result = PaymentVerificationService().verify(
                order_id=data["order_id"],
                remote_order_id=data["remote_order_id"],
                remote_payment_id=data["remote_payment_id"],
                signature=data["signature"],
            )
        except HANDLED_ERRORS as exc:
            return pipeline_error_response(exc)

        return Response(
            {
                "success": True,
                "order_id": result.order_id,
                "order_number": result.order_number,
                "payment_status": result.payment_status,
                "fulfillment_status": result.fulfillment_status,
                "already_paid": result.already_paid,
            },
            status=status.HTTP_200_OK,
        )

    # --------------------------------------------------
    # STATUS / TRACKING
    # --------------------------------------------------
    @extend_schema(request=OrderStatusUpdateSerializer, responses={200: OrderSerializer})
    def partial_update(self, request, *args, **kwargs):
        order = self.get_object()

        s = OrderStatusUpdateSerializer(data=request.data)
        if not s.is_valid():
            return validation_error_response(s.errors)

        target = s.validated_data.get("fulfillment_status")
        tracking = s.tracking()
        reason = s.validated_data.get("reason", "")

        try:
            if target == Order.STATUS_CANCELLED:
                result = CancellationOrchestrator().cancel(
                    order_id=order.pk, reason=reason, tracking=tracking or None
                )
                return Response(_cancellation_body(result), status=status.HTTP_200_OK)

            ledger = OrderLedger()
            if target:
                updated = ledger.transition(
                    order_id=order.pk,
                    target_status=target,
                    tracking=tracking or None,
                    reason=reason,
                )
            else:
                updated = ledger.update_tracking(order_id=order.pk, tracking=tracking)
        except HANDLED_ERRORS as exc:
            return pipeline_error_response(exc)

        return Response(OrderSerializer(updated).data, status=status.HTTP_200_OK)

    # --------------------------------------------------
    # CANCELLATION
    # --------------------------------------------------
    @extend_schema(request=CancelCommandSerializer, responses={200: dict})
    def destroy(self, request, *args, **kwargs):
        order = self.get_object()

        s = CancelCommandSerializer(data=request.data or {})
        if not s.is_valid():
            return validation_error_response(s.errors)

        try:
            result = CancellationOrchestrator().cancel(
                order_id=order.pk,
                reason=s.validated_data.get("reason", ""),
                allowed_from=CANCELLABLE_STATES,
            )
        except HANDLED_ERRORS as exc:
            return pipeline_error_response(exc)

        return Response(_cancellation_body(result), status=status.HTTP_200_OK)

    # --------------------------------------------------
    # REFUNDS
    # --------------------------------------------------
    @extend_schema(request=RefundCommandSerializer, responses={201: dict})
    @action(detail=True, methods=["post"], url_path="refund")
    def refund(self, request, pk=None):
        order = self.get_object()

        s = RefundCommandSerializer(data=request.data)
        if not s.is_valid():
            return validation_error_response(s.errors)
        data = s.validated_data

        try:
            outcome = RefundService().refund(
                order_id=order.pk,
                amount=data.get("amount"),
                reason=data.get("reason", ""),
                notify_customer=data.get("notify_customer", True),
            )
        except HANDLED_ERRORS as exc:
            return pipeline_error_response(exc)

        if not outcome.ok:
            return error_response(
                code="refund_failed",
                message=outcome.error or "Refund failed at the payment gateway",
                http_status=status.HTTP_502_BAD_GATEWAY,
                details={"refund_id": outcome.refund_id},
            )

        return Response(
            {
                "refund_id": outcome.refund_id,
                "remote_refund_id": outcome.remote_refund_id,
                "status": outcome.status,
                "amount": str(outcome.amount),
                "fully_refunded": outcome.fully_refunded,
            },
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(responses={200: RefundSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="refunds")
    def refunds(self, request, pk=None):
        order = self.get_object()
        rows = order.refunds.order_by("-created_at")
        return Response(RefundSerializer(rows, many=True).data, status=status.HTTP_200_OK)

    # --------------------------------------------------
    # MANUAL SHIPMENT
    # --------------------------------------------------
    @extend_schema(request=None, responses={201: dict})
    @action(detail=True, methods=["post"], url_path="create-shipment")
    def create_shipment(self, request, pk=None):
        order = self.get_object()

        if order.shipment_id:
            return error_response(
                code="shipment_exists",
                message="Order already has a shipment",
                http_status=status.HTTP_409_CONFLICT,
            )
        if order.fulfillment_status in NOT_SHIPPABLE:
            return error_response(
                code="not_shippable",
                message=f"Order is {order.fulfillment_status}",
                http_status=status.HTTP_409_CONFLICT,
            )

        outcome = ShipmentAutoCreator().run(order.pk, escalate=False)

        if not outcome.ok:
            logger.warning(
                "Manual shipment creation failed",
                extra={"order_id": str(order.pk), "error": outcome.error},
            )
            return error_response(
                code="shipment_failed",
                message=outcome.error or "Shipment creation failed",
                http_status=status.HTTP_502_BAD_GATEWAY,
                details={"attempts": outcome.attempts},
            )

        booking = outcome.booking
        return Response(
            {
                "shipment_id": booking.shipment_id,
                "awb_code": booking.awb_code,
                "courier_name": booking.courier_name,
                "tracking_url": booking.tracking_url,
                "attempts": outcome.attempts,
            },
            status=status.HTTP_201_CREATED,
        )
