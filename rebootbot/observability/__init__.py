"""Observability utilities (structured tracing, redaction, error logging)."""

from rebootbot.observability.error_log_file import log_step_error, setup_error_log_file
from rebootbot.observability.trace_context import get_run_id, run_context
from rebootbot.observability.trace_logging import configure_tracing, trace_event

__all__ = [
    "configure_tracing",
    "get_run_id",
    "log_step_error",
    "run_context",
    "setup_error_log_file",
    "trace_event",
]
