# backend/wsgi.py
"""
WSGI application for the storefront order service (gunicorn entrypoint).

Production process managers must export DJANGO_SETTINGS_MODULE=backend.settings.prod.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.dev")

application = get_wsgi_application()
