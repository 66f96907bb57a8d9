# shipping/carriers/shiprocket.py

"""
SHIPROCKET-STYLE CARRIER (HTTP, urllib)

Flow per booking:
1) token login (cached on the instance)
2) create adhoc order -> shipment_id
3) assign AWB -> awb_code + courier_name
4) pickup scheduling is best-effort; a failed pickup does not undo a booking
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from shipping.carriers.base import (
    CarrierAdapter,
    ShipmentBooking,
    ShipmentRequest,
    TrackingInfo,
)
from shipping.exceptions import CarrierConfigurationError, ShipmentCreationError

logger = logging.getLogger(__name__)

SHIPROCKET_BASE = "https://apiv2.shiprocket.in/v1/external"
TRACKING_URL = "https://shiprocket.co/tracking/{awb}"


class ShiprocketCarrier(CarrierAdapter):
    def __init__(self, *, email: str, password: str, api_base: str = SHIPROCKET_BASE, timeout_seconds: int = 20):
        self.email = email
        self.password = password
        self.api_base = (api_base or SHIPROCKET_BASE).rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._token: str | None = None

    @classmethod
    def from_settings(cls, cfg: dict) -> "ShiprocketCarrier":
        return cls(
            email=cfg.get("EMAIL", ""),
            password=cfg.get("PASSWORD", ""),
            api_base=cfg.get("API_BASE", SHIPROCKET_BASE),
            timeout_seconds=cfg.get("TIMEOUT_SECONDS", 20),
        )

    # --------------------------------------------------
    # TRANSPORT
    # --------------------------------------------------

    def _send(self, method: str, path: str, *, body: dict | None = None, token: str | None = None) -> dict[str, Any]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        data = json.dumps(body).encode("utf-8") if body is not None else None
        req = Request(f"{self.api_base}{path}", data=data, headers=headers, method=method)

        try:
            with urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8", errors="replace")
        except HTTPError as e:
            try:
                detail = e.read().decode("utf-8", errors="replace")[:300]
            except OSError:
                detail = ""
            raise ShipmentCreationError(
                f"Carrier HTTPError: {e.code} {detail}".strip(), status_code=e.code
            ) from e
        except URLError as e:
            raise ShipmentCreationError(f"Carrier URLError: {e}") from e
        except TimeoutError as e:
            raise ShipmentCreationError("Carrier request timed out") from e

        try:
            parsed = json.loads(raw or "{}")
        except ValueError as exc:
            raise ShipmentCreationError("Carrier returned non-JSON") from exc

        if not isinstance(parsed, dict):
            raise ShipmentCreationError("Carrier returned an unexpected payload")

        status_code = parsed.get("status_code")
        if isinstance(status_code, int) and status_code >= 400:
            raise ShipmentCreationError(
                parsed.get("message") or "Carrier rejected request", status_code=status_code
            )
        return parsed

    def _auth_token(self) -> str:
        if self._token:
            return self._token
        if not self.email or not self.password:
            raise CarrierConfigurationError("Carrier credentials are not configured.")

        parsed = self._send("POST", "/auth/login", body={"email": self.email, "password": self.password})
        token = str(parsed.get("token") or "").strip()
        if not token:
            raise CarrierConfigurationError("Carrier login returned no token")
        self._token = token
        return token

    def _request(self, method: str, path: str, *, body: dict | None = None) -> dict[str, Any]:
        return self._send(method, path, body=body, token=self._auth_token())

    # --------------------------------------------------
    # CAPABILITIES
    # --------------------------------------------------

    def create_shipment(self, request: ShipmentRequest) -> ShipmentBooking:
        address = request.address or {}
        payload = {
            "order_id": request.order_number,
            "order_date": request.order_date,
            "pickup_location": request.pickup_location,
            "billing_customer_name": request.customer_name,
            "billing_last_name": "",
            "billing_address": address.get("line1", ""),
            "billing_address_2": address.get("line2", ""),
            "billing_city": address.get("city", ""),
            "billing_pincode": address.get("pincode", ""),
            "billing_state": address.get("state", ""),
            "billing_country": address.get("country") or "India",
            "billing_email": request.customer_email,
            "billing_phone": request.customer_phone,
            "shipping_is_billing": True,
            "order_items": request.items,
            "payment_method": "COD" if request.payment_mode == "cod" else "Prepaid",
            "sub_total": float(request.order_value),
            "length": request.length_cm,
            "breadth": request.breadth_cm,
            "height": request.height_cm,
            "weight": request.weight_kg,
        }

        created = self._request("POST", "/orders/create/adhoc", body=payload)
        shipment_id = str(created.get("shipment_id") or "").strip()
        if not shipment_id:
            raise ShipmentCreationError(created.get("message") or "Carrier returned no shipment id")

        awb_code = str(created.get("awb_code") or "").strip()
        courier_name = str(created.get("courier_name") or "").strip()

        if not awb_code:
            assigned = self._request("POST", "/courier/assign/awb", body={"shipment_id": shipment_id})
            data = ((assigned.get("response") or {}).get("data")) or {}
            awb_code = str(data.get("awb_code") or "").strip()
            courier_name = str(data.get("courier_name") or courier_name).strip()

        logger.info(
            "Carrier shipment created",
            extra={"order_id": request.order_id, "shipment_id": shipment_id, "awb": awb_code},
        )
        return ShipmentBooking(
            shipment_id=shipment_id,
            awb_code=awb_code,
            courier_name=courier_name,
            tracking_url=TRACKING_URL.format(awb=awb_code) if awb_code else "",
        )

    def schedule_pickup(self, shipment_id: str) -> dict:
        return self._request(
            "POST", "/courier/generate/pickup", body={"shipment_id": [shipment_id]}
        )

    def track(self, awb_code: str) -> TrackingInfo:
        parsed = self._request("GET", f"/courier/track/awb/{awb_code}")
        data = parsed.get("tracking_data") or {}
        tracks = data.get("shipment_track") or []
        status = str((tracks[0] or {}).get("current_status") or "") if tracks else ""
        return TrackingInfo(
            awb_code=awb_code,
            status=status,
            events=list(data.get("shipment_track_activities") or []),
        )
