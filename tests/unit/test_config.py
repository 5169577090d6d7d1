"""Unit tests for AutomationConfig configuration system."""

import json

import pytest
from pydantic import ValidationError

from rebootbot.config import AutomationConfig, _flatten_secrets_mapping


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Run from an empty directory so no stray .env file is read."""
    monkeypatch.chdir(tmp_path)
    for key in ("REBOOTBOT_DASHBOARD_EMAIL", "REBOOTBOT_DASHBOARD_PASSWORD", "REBOOTBOT_API_PORT"):
        monkeypatch.delenv(key, raising=False)


class TestAutomationConfigDefaults:
    """Tests for AutomationConfig default values."""

    def test_timing_defaults(self):
        config = AutomationConfig()
        assert config.navigation_settle_ms == 8000
        assert config.processing_poll_interval_seconds == 10
        assert config.processing_max_attempts == 30
        assert config.command_timeout_seconds == 30
        assert config.upload_timeout_ms == 120000

    def test_default_database_url(self):
        """Default database URL should use aiosqlite."""
        assert AutomationConfig().database_url == "sqlite+aiosqlite:///./rebootbot.db"

    def test_credentials_unconfigured_by_default(self):
        assert not AutomationConfig().dashboard_credentials().configured

    def test_poll_attempts_must_be_positive(self):
        with pytest.raises(ValidationError):
            AutomationConfig(processing_max_attempts=0)


class TestAutomationConfigEnvOverrides:
    """Tests for environment variable overrides."""

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("REBOOTBOT_DASHBOARD_EMAIL", "coach@example.com")
        monkeypatch.setenv("REBOOTBOT_API_PORT", "9000")

        config = AutomationConfig()

        assert config.dashboard_email == "coach@example.com"
        assert config.api_port == 9000


class TestFromJsonFile:
    """Tests for JSON + secrets.yml + env layering."""

    def test_missing_files_use_defaults(self, tmp_path):
        config = AutomationConfig.from_json_file(
            str(tmp_path / "nope.json"), str(tmp_path / "nope.yml")
        )
        assert config.dashboard_url == "https://dashboard.rebootmotion.com"

    def test_json_then_secrets(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(
            json.dumps({"dashboard_url": "https://dash.test", "dashboard_email": "json@x.test"})
        )
        secrets_path = tmp_path / "secrets.yml"
        secrets_path.write_text(
            "dashboard:\n  email: secret@x.test\n  password: hunter2\n"
            "browser:\n  api_key: bb_test_abcdefgh\n"
        )

        config = AutomationConfig.from_json_file(str(config_path), str(secrets_path))

        assert config.dashboard_url == "https://dash.test"
        assert config.dashboard_email == "secret@x.test"
        assert config.dashboard_password == "hunter2"
        assert config.browser_api_key == "bb_test_abcdefgh"
        assert config.dashboard_credentials().configured

    def test_env_overrides_files(self, tmp_path, monkeypatch):
        secrets_path = tmp_path / "secrets.yml"
        secrets_path.write_text("dashboard:\n  password: from-file\n")
        monkeypatch.setenv("REBOOTBOT_DASHBOARD_PASSWORD", "from-env")

        config = AutomationConfig.from_json_file(str(tmp_path / "config.json"), str(secrets_path))

        assert config.dashboard_password == "from-env"

    def test_non_mapping_secrets_ignored(self, tmp_path):
        secrets_path = tmp_path / "secrets.yml"
        secrets_path.write_text("- just\n- a list\n")

        config = AutomationConfig.from_json_file(str(tmp_path / "config.json"), str(secrets_path))

        assert config.dashboard_password is None


class TestFlattenSecrets:
    def test_nested_and_flat_keys(self):
        assert _flatten_secrets_mapping(
            {"functions": {"service_key": "k"}, "database_url": "sqlite:///x.db"}
        ) == {"functions_service_key": "k", "database_url": "sqlite:///x.db"}
