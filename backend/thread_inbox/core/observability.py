"""Logging setup for the inbox API.

Environment knobs:

- LOG_LEVEL (default: INFO): root logger level
- DISABLE_ACCESS_LOG: silence uvicorn's per-request access lines
"""

from __future__ import annotations

import logging
import os

from pythonjsonlogger import jsonlogger

from .config import settings


def _parse_bool(value: str | bool | None, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def setup_logging() -> None:
    """Configure structured JSON logging."""
    handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    handler.setFormatter(formatter)
    root = logging.getLogger()
    root.handlers = [handler]
    # Prefer process env, then Settings fallback (loaded from .env)
    level_name = (os.getenv("LOG_LEVEL") or settings.LOG_LEVEL or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    root.setLevel(level)
    # Polling clients hit the API every few seconds; access lines are noise
    # unless we are debugging.
    access_logger = logging.getLogger("uvicorn.access")
    disable_access = _parse_bool(os.getenv("DISABLE_ACCESS_LOG"), level >= logging.WARNING)
    if disable_access:
        access_logger.handlers = []
        access_logger.propagate = False
        access_logger.disabled = True
    else:
        access_logger.setLevel(level)
