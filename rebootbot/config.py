"""Configuration with JSON file, secrets.yml, and env variable support."""

import json
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from rebootbot.flows.login import DashboardCredentials

ENV_PREFIX = "REBOOTBOT_"


def _flatten_secrets_mapping(secrets: dict) -> dict:
    """Flatten secrets mapping into AutomationConfig-compatible keys.

    Converts nested YAML structure to flat config keys:
        browser.api_key -> browser_api_key
        dashboard.password -> dashboard_password
    """
    flat = {}
    for section, values in secrets.items():
        if isinstance(values, dict):
            for key, value in values.items():
                flat[f"{section}_{key}"] = value
        else:
            flat[section] = values
    return flat


def _load_secrets(secrets_path: Path) -> dict:
    """Load and flatten secrets from YAML file."""
    if not secrets_path.exists():
        return {}

    with open(secrets_path) as f:
        secrets = yaml.safe_load(f) or {}

    if not isinstance(secrets, dict):
        return {}

    return _flatten_secrets_mapping(secrets)


class AutomationConfig(BaseSettings):
    """Application configuration.

    Load order (later overrides earlier):
    1. config.json - base configuration
    2. secrets.yml - sensitive values (API keys, dashboard login)
    3. Environment variables - runtime overrides

    Prefix: REBOOTBOT_ (e.g., REBOOTBOT_BROWSER_API_KEY)
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Browser provider
    browser_api_url: str = Field(default="https://api.browserbase.com/v1")
    browser_api_key: str | None = Field(default=None)
    browser_project_id: str | None = Field(default=None)
    browser_keep_alive: bool = Field(default=True)
    browser_session_timeout_seconds: int = Field(default=300)
    browser_fingerprint_browsers: list[str] = Field(default_factory=lambda: ["chrome"])
    browser_fingerprint_devices: list[str] = Field(default_factory=lambda: ["desktop"])
    browser_fingerprint_operating_systems: list[str] = Field(
        default_factory=lambda: ["windows"]
    )
    replay_url_template: str = Field(
        default="https://browserbase.com/sessions/{session_id}",
        description="Diagnostic replay link; {session_id} is the provider session id",
    )

    # Dashboard
    dashboard_url: str = Field(default="https://dashboard.rebootmotion.com")
    dashboard_email: str | None = Field(default=None)
    dashboard_password: str | None = Field(default=None)

    # Timing
    command_timeout_seconds: float = Field(default=30)
    connect_timeout_seconds: float = Field(default=20)
    navigation_settle_ms: int = Field(default=8000)
    login_form_timeout_ms: int = Field(default=10000)
    login_settle_ms: int = Field(default=8000)
    search_filter_wait_ms: int = Field(default=2000)
    upload_interface_timeout_ms: int = Field(default=10000)
    upload_timeout_ms: int = Field(default=120000)
    processing_poll_interval_seconds: float = Field(default=10)
    processing_max_attempts: int = Field(default=30, ge=1)

    # Downstream functions
    functions_base_url: str | None = Field(
        default=None,
        description="Base URL of the functions host, e.g. https://<project>.supabase.co/functions/v1",
    )
    functions_service_key: str | None = Field(default=None)

    # Storage
    database_url: str = Field(default="sqlite+aiosqlite:///./rebootbot.db")
    auto_create_tables: bool = Field(
        default=False,
        description="Create tables on startup instead of relying on alembic migrations",
    )

    # Observability
    trace_enabled: bool = Field(default=True)
    trace_max_chars: int = Field(default=2000)
    error_log_file_enabled: bool = Field(default=True)
    error_log_file_path: str = Field(default="./logs/errors.log")
    error_log_level: str = Field(default="WARNING")
    error_log_max_bytes: int = Field(default=10_485_760)
    error_log_backup_count: int = Field(default=5)

    # HTTP API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8742)

    def dashboard_credentials(self) -> DashboardCredentials:
        """Dashboard login as an explicit value for the pipeline constructor."""
        return DashboardCredentials(
            email=self.dashboard_email or "",
            password=self.dashboard_password or "",
        )

    @classmethod
    def from_json_file(
        cls,
        config_path: str = "config.json",
        secrets_path: str = "secrets.yml",
    ) -> "AutomationConfig":
        """Load config from JSON + secrets.yml with env var overrides.

        Args:
            config_path: Path to JSON config file.
            secrets_path: Path to secrets YAML file.

        Returns:
            Configured AutomationConfig instance.
        """
        config_data: dict[str, Any] = {}

        json_path = Path(config_path)
        if json_path.exists():
            with open(json_path) as f:
                config_data = json.load(f)

        config_data.update(_load_secrets(Path(secrets_path)))

        # Drop file values shadowed by env vars so pydantic-settings applies the env value.
        for key in [k for k in config_data if f"{ENV_PREFIX}{k.upper()}" in os.environ]:
            del config_data[key]

        return cls(**config_data)
