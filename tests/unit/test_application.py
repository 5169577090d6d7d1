"""Tests for application wiring."""

import httpx
import pytest

from rebootbot.config import AutomationConfig
from rebootbot.main import Application, build_fastapi_app
from rebootbot.services.pipeline_service import AutomationPipeline


def _config(**overrides) -> AutomationConfig:
    values = {
        "database_url": "sqlite+aiosqlite:///:memory:",
        "auto_create_tables": True,
        "error_log_file_enabled": False,
        "trace_enabled": False,
    }
    values.update(overrides)
    return AutomationConfig(**values)


class TestApplication:
    @pytest.mark.asyncio
    async def test_setup_wires_pipeline_without_functions(self):
        application = Application(_config())
        await application.setup()
        try:
            assert isinstance(application.pipeline, AutomationPipeline)
            assert application.pipeline._analysis is None
            assert application.pipeline._notifier is None
            assert application.player_dao is not None
        finally:
            await application.shutdown()

    @pytest.mark.asyncio
    async def test_setup_passes_configured_functions_clients(self):
        application = Application(
            _config(functions_base_url="https://fn.test/functions/v1", functions_service_key="k")
        )
        await application.setup()
        try:
            assert application.pipeline._analysis is application.analysis_client
            assert application.pipeline._notifier is application.notifier
        finally:
            await application.shutdown()

    @pytest.mark.asyncio
    async def test_unconfigured_credentials_rejected_over_http(self):
        application = Application(_config())
        await application.setup()
        try:
            transport = httpx.ASGITransport(app=build_fastapi_app(application))
            async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.post("/automation", json={"action": "test_login"})

            assert response.status_code == 400
            assert response.json()["errorType"] == "ConfigurationError"
        finally:
            await application.shutdown()

    def test_create_fastapi_app_requires_setup(self):
        with pytest.raises(RuntimeError):
            Application(_config()).create_fastapi_app()
