"""Structured logging helpers."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

JSON_LOGS_ENV = "VAM_JSON_LOGS"


def _json_logs_from_env() -> bool:
    return os.getenv(JSON_LOGS_ENV, "false").lower() == "true"


def configure_logging(level: str = "INFO", json_logs: bool | None = None) -> None:
    """Configure global logging. Respects VAM_JSON_LOGS env override."""

    if json_logs is None:
        json_logs = _json_logs_from_env()

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s" if json_logs else "%(asctime)s %(levelname)s:%(name)s:%(message)s",
    )
    # per-request httpx lines stay out of INFO output
    logging.getLogger("httpx").setLevel(logging.WARNING)


def log_event(logger: logging.Logger, event: str, *, json_logs: bool | None = None, **fields: Any) -> None:
    """Emit a structured log event."""

    if json_logs is None:
        json_logs = _json_logs_from_env()

    payload = {"event": event, **fields}
    if json_logs:
        logger.info(json.dumps(payload, default=str))
    else:
        logger.info(payload)
