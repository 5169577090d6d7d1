"""Unit tests for StrEnum definitions."""

import pytest

from rebootbot.enums import AutomationAction, JobStatus, LogSeverity
from rebootbot.models.domain import AutomationRequest


class TestAutomationAction:
    """Tests for AutomationAction enum."""

    @pytest.mark.parametrize(
        "value",
        [
            "upload_video",
            "create_player",
            "download_data",
            "full_pipeline",
            "test_login",
            "find_player",
            "pull_reports",
        ],
    )
    def test_wire_values(self, value):
        assert AutomationAction(value) == value

    def test_request_parses_action(self):
        request = AutomationRequest.model_validate({"action": "full_pipeline"})
        assert request.action is AutomationAction.FULL_PIPELINE


class TestJobStatus:
    def test_terminal_states_are_distinct(self):
        assert JobStatus.TIMED_OUT != JobStatus.FAILED
        assert JobStatus.UPLOAD_FAILED != JobStatus.FAILED


class TestLogSeverity:
    def test_values_match_logger_methods(self):
        """Each value names a logging.Logger method."""
        import logging

        logger = logging.getLogger("test")
        for severity in LogSeverity:
            assert callable(getattr(logger, severity.value))
