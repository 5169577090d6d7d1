"""Application entry point and bootstrap.

Wires configuration, database, DAOs, collaborators and the automation
pipeline, and serves the HTTP API with uvicorn.
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from rebootbot import __version__
from rebootbot.browser.provisioner import SessionProvisioner
from rebootbot.config import AutomationConfig
from rebootbot.dao import ActivityLogDAO, PlayerDAO
from rebootbot.database import Database
from rebootbot.logging_filters import install_uvicorn_access_log_filters, quiet_noisy_loggers
from rebootbot.observability import configure_tracing, setup_error_log_file
from rebootbot.routers import create_automation_router, create_health_router
from rebootbot.services import (
    ActivityLogService,
    AutomationPipeline,
    FunctionsAnalysisClient,
    FunctionsNotifier,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


class Application:
    """Main application container.

    Owns every long-lived component and tears them down in reverse order.
    """

    def __init__(self, config: AutomationConfig) -> None:
        self.config = config

        self.database: Database | None = None
        self.fastapi_app: FastAPI | None = None

        self.player_dao: PlayerDAO | None = None
        self.activity_log_dao: ActivityLogDAO | None = None

        self.provisioner: SessionProvisioner | None = None
        self.analysis_client: FunctionsAnalysisClient | None = None
        self.notifier: FunctionsNotifier | None = None
        self.activity_log_service: ActivityLogService | None = None
        self.pipeline: AutomationPipeline | None = None

    async def setup(self) -> None:
        """Initialize all application components."""
        logger.info("Setting up application components...")

        setup_error_log_file(self.config)
        configure_tracing(
            enabled=self.config.trace_enabled, max_chars=self.config.trace_max_chars
        )
        quiet_noisy_loggers()

        self.database = Database(self.config.database_url)
        if self.config.auto_create_tables:
            await self.database.init_db()
            logger.info("Database initialized (auto_create_tables=true)")
        else:
            logger.info(
                "Database initialized (auto_create_tables=false; relying on Alembic migrations)"
            )

        self.player_dao = PlayerDAO(self.database)
        self.activity_log_dao = ActivityLogDAO(self.database)
        self.activity_log_service = ActivityLogService(self.activity_log_dao)

        self.provisioner = SessionProvisioner(self.config)
        self.analysis_client = FunctionsAnalysisClient(
            self.config.functions_base_url, self.config.functions_service_key
        )
        self.notifier = FunctionsNotifier(
            self.config.functions_base_url, self.config.functions_service_key
        )
        if not self.analysis_client.configured:
            logger.warning("Functions endpoint not configured; runs stop after export")

        self.pipeline = AutomationPipeline.from_config(
            self.config,
            provisioner=self.provisioner,
            player_store=self.player_dao,
            activity_log=self.activity_log_service,
            analysis=self.analysis_client if self.analysis_client.configured else None,
            notifier=self.notifier if self.notifier.configured else None,
        )
        if not self.config.dashboard_credentials().configured:
            logger.warning("Dashboard credentials not configured; every run will be rejected")

        logger.info("Application setup complete")

    def create_fastapi_app(self) -> FastAPI:
        """Create the FastAPI application and register routers."""
        if self.pipeline is None:
            raise RuntimeError("Application.setup() must run before create_fastapi_app()")

        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
            logger.info("FastAPI application starting...")
            yield
            logger.info("FastAPI application shutting down...")

        self.fastapi_app = build_fastapi_app(self, lifespan=lifespan)
        return self.fastapi_app

    async def shutdown(self) -> None:
        """Close HTTP clients and database connections."""
        logger.info("Initiating graceful shutdown...")

        for client in (self.provisioner, self.analysis_client, self.notifier):
            if client is not None:
                await client.close()

        if self.database:
            await self.database.close()
            logger.info("Database connection closed")

        logger.info("Graceful shutdown complete")


def build_fastapi_app(application: Application, *, lifespan=None) -> FastAPI:
    """FastAPI app exposing the automation and health routers."""
    app = FastAPI(
        title="rebootbot",
        description="Remote-browser automation for the Reboot Motion dashboard",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(create_health_router())
    if application.pipeline is not None:
        app.include_router(
            create_automation_router(
                application.pipeline, activity_log=application.activity_log_service
            )
        )
        logger.info("Automation router registered")
    return app


async def create_app(config: AutomationConfig | None = None) -> Application:
    """Create and set up the application.

    Args:
        config: Optional configuration. If not provided, loads from
                config.json + secrets.yml with environment overrides.
    """
    if config is None:
        config = AutomationConfig.from_json_file()

    application = Application(config)
    await application.setup()
    application.create_fastapi_app()
    return application


async def main(reload: bool = False) -> None:
    """Run the API server until shutdown."""
    import uvicorn

    logger.info("Starting rebootbot...")
    application: Application | None = None

    try:
        config = AutomationConfig.from_json_file()
        logger.info("Configuration loaded")

        application = await create_app(config)
        logger.info(
            "Application running. API available at http://%s:%d",
            config.api_host,
            config.api_port,
        )

        uvicorn_config = uvicorn.Config(
            application.fastapi_app,
            host=config.api_host,
            port=config.api_port,
            log_level="info",
            reload=reload,
        )
        uvicorn_config.load()
        install_uvicorn_access_log_filters()

        server = uvicorn.Server(uvicorn_config)
        await server.serve()

    except Exception as e:
        logger.exception("Application error: %s", e)
        raise
    finally:
        if application is not None:
            await application.shutdown()


def run() -> None:
    """Console script entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Run the rebootbot automation API")
    parser.add_argument("--reload", action="store_true", help="Enable hot reload")
    args = parser.parse_args()

    asyncio.run(main(reload=args.reload))


if __name__ == "__main__":
    run()
