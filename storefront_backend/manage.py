"""
PATH: manage.py

Command-line entrypoint for the storefront order service.

Settings selection:
- DJANGO_SETTINGS_MODULE wins when it names a concrete module
- unset, or pointing at the bare "backend.settings" package, falls back to dev
- production deploys export backend.settings.prod

Operational commands worth knowing:
- migrate
- test
- release_expired_reservations [--dry-run]   (run from cron)
"""

from __future__ import annotations

import os
import sys

DEFAULT_SETTINGS = "backend.settings.dev"


def _ensure_settings_module() -> None:
    selected = (os.environ.get("DJANGO_SETTINGS_MODULE") or "").strip()
    if selected in ("", "backend.settings"):
        os.environ["DJANGO_SETTINGS_MODULE"] = DEFAULT_SETTINGS


def main() -> None:
    _ensure_settings_module()

    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Django is not importable. Install the project first: "
            "pip install -e .[test]"
        ) from exc

    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
