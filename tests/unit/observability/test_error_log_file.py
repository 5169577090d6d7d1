"""Tests for error log file handler."""

import logging
from unittest.mock import MagicMock

import pytest

from rebootbot.observability.error_log_file import (
    get_error_log_handler,
    log_step_error,
    setup_error_log_file,
    teardown_error_log_file,
)


@pytest.fixture
def mock_config(tmp_path):
    """Create a mock config with error log settings."""
    config = MagicMock()
    config.error_log_file_enabled = True
    config.error_log_file_path = str(tmp_path / "logs" / "errors.log")
    config.error_log_level = "WARNING"
    config.error_log_max_bytes = 1024 * 1024
    config.error_log_backup_count = 3
    return config


@pytest.fixture(autouse=True)
def cleanup_handler():
    """Detach the module-level handler so tests do not leak into each other."""
    teardown_error_log_file()
    yield
    teardown_error_log_file()


class TestSetupErrorLogFile:
    def test_creates_directory_and_handler(self, mock_config, tmp_path):
        handler = setup_error_log_file(mock_config)

        assert handler is not None
        assert (tmp_path / "logs").is_dir()
        assert handler in logging.getLogger().handlers
        assert get_error_log_handler() is handler

    def test_returns_none_when_disabled(self, mock_config):
        mock_config.error_log_file_enabled = False
        assert setup_error_log_file(mock_config) is None

    def test_idempotent(self, mock_config):
        first = setup_error_log_file(mock_config)
        second = setup_error_log_file(mock_config)

        assert first is second
        assert logging.getLogger().handlers.count(first) == 1

    def test_level_from_config(self, mock_config):
        mock_config.error_log_level = "ERROR"
        assert setup_error_log_file(mock_config).level == logging.ERROR

    def test_unknown_level_falls_back_to_warning(self, mock_config):
        mock_config.error_log_level = "LOUD"
        assert setup_error_log_file(mock_config).level == logging.WARNING

    def test_teardown_detaches(self, mock_config):
        handler = setup_error_log_file(mock_config)
        teardown_error_log_file()

        assert handler not in logging.getLogger().handlers
        assert get_error_log_handler() is None


class TestLogStepError:
    def test_writes_context_to_file(self, mock_config, tmp_path):
        handler = setup_error_log_file(mock_config)

        log_step_error(
            "upload",
            RuntimeError("Upload interface not found"),
            run_id="run-1",
            extra={"browser_session_id": "bb-1"},
        )
        handler.flush()

        content = (tmp_path / "logs" / "errors.log").read_text()
        assert "rebootbot.steps.upload" in content
        assert "error_type=RuntimeError" in content
        assert "run_id=run-1" in content
        assert "browser_session_id=bb-1" in content
        assert "Upload interface not found" in content

    def test_string_error(self, caplog):
        with caplog.at_level(logging.ERROR, logger="rebootbot.steps.login"):
            log_step_error("login", "Login form not detected")

        [record] = [r for r in caplog.records if r.name == "rebootbot.steps.login"]
        assert "error_type=Error" in record.getMessage()
