"""Logging helpers and filters shared by the entrypoints
(``python -m rebootbot.main`` and ``uvicorn rebootbot.asgi:app``)."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

QUIET_PATHS = ("/health",)


class SuppressQuietPathAccessLog(logging.Filter):
    """Drop Uvicorn access records for probe endpoints such as ``/health``."""

    def __init__(self, paths: Iterable[str] = QUIET_PATHS) -> None:
        super().__init__()
        self.paths = tuple(paths)

    def _is_quiet(self, path: str) -> bool:
        return any(path == p or path.startswith(p + "?") for p in self.paths)

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        # Uvicorn access args: (client_addr, method, full_path, http_version, status_code)
        args: Any = record.args
        if isinstance(args, tuple) and len(args) >= 3:
            return not self._is_quiet(str(args[2]))

        # Pre-formatted access lines: '... "GET /health HTTP/1.1" 200'
        message = record.getMessage()
        return not any(
            f'"{method} {path} ' in message for method in ("GET", "HEAD") for path in self.paths
        )


def install_uvicorn_access_log_filters(paths: Iterable[str] = QUIET_PATHS) -> None:
    """Install the access-log filter once; repeated calls are no-ops."""
    access_logger = logging.getLogger("uvicorn.access")
    if any(isinstance(f, SuppressQuietPathAccessLog) for f in access_logger.filters):
        return
    access_logger.addFilter(SuppressQuietPathAccessLog(paths))


def quiet_noisy_loggers() -> None:
    """Keep third-party client chatter out of the run logs."""
    for name in ("aiohttp.access", "aiosqlite", "sqlalchemy.engine"):
        logging.getLogger(name).setLevel(logging.WARNING)
