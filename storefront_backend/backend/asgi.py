# backend/asgi.py
"""
ASGI application for the storefront order service.

The order API is synchronous; this entrypoint exists for ASGI servers
(uvicorn/daphne) and uses the same settings selection as wsgi.py.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.dev")

application = get_asgi_application()
