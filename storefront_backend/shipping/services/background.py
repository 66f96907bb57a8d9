# shipping/services/background.py

"""
DETACHED BACKGROUND TASKS

Off-critical-path work (carrier booking, notifications) is:
- scheduled with transaction.on_commit, so it never sees uncommitted rows
  and never runs for a rolled-back checkout
- run on a named daemon thread that closes its own DB connection
- logged on failure, never silently dropped

settings.BACKGROUND_TASKS_EAGER runs the task inline (tests).
"""

from __future__ import annotations

import logging
import threading

from django.conf import settings
from django.db import close_old_connections, connection, transaction

logger = logging.getLogger(__name__)


def _run_logged(func, args, kwargs, *, name: str):
    try:
        func(*args, **kwargs)
    except Exception:
        logger.exception("Background task failed", extra={"task": name})


def _thread_main(func, args, kwargs, *, name: str):
    close_old_connections()
    try:
        _run_logged(func, args, kwargs, name=name)
    finally:
        connection.close()


def run_detached(func, *args, name: str, **kwargs) -> threading.Thread | None:
    if getattr(settings, "BACKGROUND_TASKS_EAGER", False):
        _run_logged(func, args, kwargs, name=name)
        return None

    thread = threading.Thread(
        target=_thread_main,
        args=(func, args, kwargs),
        kwargs={"name": name},
        name=name,
        daemon=True,
    )
    thread.start()
    logger.debug("Background task started", extra={"task": name})
    return thread


def schedule_after_commit(func, *args, name: str, **kwargs) -> None:
    transaction.on_commit(lambda: run_detached(func, *args, name=name, **kwargs))
