"""Rotating error log file for warnings and failures.

Operators debug failed runs from the replay reference first; this file keeps
the matching warnings and errors on disk so a run id can be traced back.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from rebootbot.config import AutomationConfig

_error_file_handler: RotatingFileHandler | None = None

_ATTACHED_LOGGERS = ("rebootbot.trace", "rebootbot.errors")


def setup_error_log_file(config: AutomationConfig) -> RotatingFileHandler | None:
    """Attach a rotating file handler for WARNING+ records.

    Returns:
        The configured handler, or None if disabled or the file cannot be opened.
    """
    global _error_file_handler

    if not config.error_log_file_enabled:
        return None
    if _error_file_handler is not None:
        return _error_file_handler

    level_name = config.error_log_level.upper()
    level = getattr(logging, level_name, logging.WARNING)
    log_file = Path(config.error_log_file_path).expanduser()
    if not log_file.is_absolute():
        log_file = Path.cwd() / log_file
    log_file = log_file.resolve()

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            filename=str(log_file),
            maxBytes=config.error_log_max_bytes,
            backupCount=config.error_log_backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        print(f"Warning: Cannot create error log file {log_file}: {e}", file=sys.stderr)
        return None

    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    logging.getLogger().addHandler(handler)
    # Trace loggers may be configured with propagate=False by deployments.
    for name in _ATTACHED_LOGGERS:
        logger = logging.getLogger(name)
        if not logger.propagate and handler not in logger.handlers:
            logger.addHandler(handler)

    _error_file_handler = handler
    logging.getLogger(__name__).info(
        "Error log file handler initialized: %s (level=%s)", log_file, level_name
    )
    return handler


def get_error_log_handler() -> RotatingFileHandler | None:
    return _error_file_handler


def teardown_error_log_file() -> None:
    """Detach and close the handler installed by ``setup_error_log_file``."""
    global _error_file_handler
    if _error_file_handler is None:
        return
    logging.getLogger().removeHandler(_error_file_handler)
    for name in _ATTACHED_LOGGERS:
        logging.getLogger(name).removeHandler(_error_file_handler)
    _error_file_handler.close()
    _error_file_handler = None


def log_step_error(
    step: str,
    error: Exception | str,
    *,
    run_id: str | None = None,
    extra: dict[str, Any] | None = None,
) -> None:
    """Log a failed pipeline step with its context on one line."""
    logger = logging.getLogger(f"rebootbot.steps.{step}")
    error_type = type(error).__name__ if isinstance(error, Exception) else "Error"

    context = [f"step={step}", f"error_type={error_type}"]
    if run_id:
        context.append(f"run_id={run_id}")
    for key, value in (extra or {}).items():
        context.append(f"{key}={value}")

    logger.error("[%s] %s", " ".join(context), error)
