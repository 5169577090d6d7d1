"""Shared flow plumbing: step results and timing knobs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rebootbot.browser.errors import AutomationError

if TYPE_CHECKING:
    from rebootbot.config import AutomationConfig


@dataclass
class StepResult:
    """Outcome of one flow step.

    Expected failures are values: ``ok`` is False and ``error`` carries the
    typed error. Steps only raise for unexpected conditions.
    """

    ok: bool
    message: str
    error: AutomationError | None = None

    @property
    def error_type(self) -> str | None:
        return type(self.error).__name__ if self.error is not None else None


@dataclass(frozen=True)
class FlowTiming:
    """Waits and bounds used by the flow steps, in milliseconds unless noted."""

    login_navigate_extra_ms: int = 3000
    login_form_timeout_ms: int = 10000
    field_pause_ms: int = 500
    login_settle_ms: int = 8000
    listing_timeout_ms: int = 10000
    search_filter_wait_ms: int = 2000
    create_settle_ms: int = 5000
    upload_interface_timeout_ms: int = 10000
    upload_timeout_ms: int = 120000
    status_render_timeout_ms: int = 5000
    poll_interval_seconds: float = 10
    max_poll_attempts: int = 30
    export_options_timeout_ms: int = 10000
    export_pause_ms: int = 2000
    reports_extra_wait_ms: int = 5000

    @classmethod
    def from_config(cls, config: AutomationConfig) -> FlowTiming:
        return cls(
            login_form_timeout_ms=config.login_form_timeout_ms,
            login_settle_ms=config.login_settle_ms,
            search_filter_wait_ms=config.search_filter_wait_ms,
            upload_interface_timeout_ms=config.upload_interface_timeout_ms,
            upload_timeout_ms=config.upload_timeout_ms,
            poll_interval_seconds=config.processing_poll_interval_seconds,
            max_poll_attempts=config.processing_max_attempts,
        )
