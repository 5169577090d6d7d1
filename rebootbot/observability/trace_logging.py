"""Structured trace/event logging.

One JSON object per line on the ``rebootbot.trace`` logger. Events describe
observable pipeline actions (run start/end, step outcomes, browser session
lease and release); payloads are sanitized before serialization.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from rebootbot.observability.redaction import sanitize
from rebootbot.observability.trace_context import get_actor_id, get_run_id

_logger = logging.getLogger("rebootbot.trace")
_error_logger = logging.getLogger("rebootbot.errors")

_settings: dict[str, Any] = {"enabled": True, "max_chars": 2000}


def configure_tracing(*, enabled: bool = True, max_chars: int = 2000) -> None:
    """Apply tracing settings from configuration."""
    _settings["enabled"] = enabled
    _settings["max_chars"] = max_chars


def trace_event(event: str, *, max_chars: int | None = None, **fields: Any) -> None:
    """Emit a structured trace event.

    Args:
        event: Short event name, e.g. 'pipeline.step'.
        max_chars: Max chars for any string field after sanitization.
        **fields: Event payload (will be sanitized).
    """
    if not _settings["enabled"]:
        return
    limit = max_chars if max_chars is not None else _settings["max_chars"]

    record: dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "run_id": get_run_id(),
        "actor_id": get_actor_id(),
    }
    record.update(sanitize(fields, max_chars=limit))

    try:
        _logger.info(json.dumps(record, ensure_ascii=False, separators=(",", ":"), default=str))
    except (TypeError, ValueError):
        _logger.info('{"event":"%s","error":"failed_to_serialize"}', event)
        return

    if event.endswith(".error") or event.endswith("_failed") or "error" in fields:
        _error_logger.error(
            "[%s] %s: %s (run_id=%s, actor_id=%s)",
            event,
            record.get("error_type", "Error"),
            record.get("error", "Unknown error"),
            record["run_id"],
            record["actor_id"],
        )
