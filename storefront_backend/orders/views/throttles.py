# orders/views/throttles.py

from rest_framework.throttling import AnonRateThrottle


class PublicWriteThrottle(AnonRateThrottle):
    scope = "public_write"


class WebhookThrottle(AnonRateThrottle):
    scope = "webhook"
