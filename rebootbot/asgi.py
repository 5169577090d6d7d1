"""ASGI entry point for uvicorn with hot reload support.

Usage:
    uvicorn rebootbot.asgi:app --reload --host 0.0.0.0 --port 8742
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from rebootbot import __version__
from rebootbot.config import AutomationConfig
from rebootbot.logging_filters import install_uvicorn_access_log_filters
from rebootbot.main import Application
from rebootbot.routers import create_automation_router, create_health_router

_application: Application | None = None


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the application on startup, tear it down on shutdown."""
    global _application

    config = AutomationConfig.from_json_file()
    install_uvicorn_access_log_filters()
    _application = Application(config)
    await _application.setup()

    if _application.pipeline is not None:
        fastapi_app.include_router(
            create_automation_router(
                _application.pipeline, activity_log=_application.activity_log_service
            )
        )

    yield

    await _application.shutdown()
    _application = None


app = FastAPI(
    title="rebootbot",
    description="Remote-browser automation for the Reboot Motion dashboard",
    version=__version__,
    lifespan=lifespan,
)
app.include_router(create_health_router())
