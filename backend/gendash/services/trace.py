from __future__ import annotations

import json
import logging
from typing import Any

from gendash.config import settings


def preview_text(text: str, limit: int | None = None) -> str:
    raw = str(text or "").replace("\r", " ").replace("\n", " ").strip()
    cap = int(limit or settings.log_preview_chars)
    if len(raw) <= cap:
        return raw
    return raw[:cap].rstrip() + " ..."


def format_log_value(value: Any) -> str:
    if isinstance(value, str):
        return preview_text(value, 220)
    if isinstance(value, (int, float, bool)) or value is None:
        return str(value)
    try:
        serialized = json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        serialized = repr(value)
    return preview_text(serialized, 220)


def log_event(
    logger: logging.Logger,
    event: str,
    *,
    level: int = logging.INFO,
    force: bool = False,
    **details: Any,
) -> None:
    """Emit a single-line ``event | key=value`` record.

    Records below WARNING are dropped unless verbose tracing is on or *force*
    is set.
    """
    if level < logging.WARNING and not force and not settings.verbose_pipeline_trace:
        return
    if details:
        parts = [f"{key}={format_log_value(value)}" for key, value in details.items()]
        logger.log(level, "%s | %s", event, " ".join(parts))
    else:
        logger.log(level, "%s", event)
