"""Pytest configuration and fixtures."""

import logging

import pytest
import pytest_asyncio

from rebootbot.browser.page import Page
from rebootbot.database import Database
from rebootbot.flows.base import FlowTiming
from fakes import FakeDashboard, RecordingSleep

# Configure pytest-asyncio to auto-detect async tests
pytest_plugins = ("pytest_asyncio",)


def pytest_configure(config: pytest.Config) -> None:
    """Keep third-party client chatter out of captured logs."""
    for name in ["aiohttp.access", "aiosqlite", "sqlalchemy.engine"]:
        logging.getLogger(name).setLevel(logging.WARNING)


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest_asyncio.fixture
async def db():
    """Create an in-memory test database."""
    database = Database("sqlite+aiosqlite:///:memory:")
    await database.init_db()
    yield database
    await database.close()


@pytest.fixture
def dashboard() -> FakeDashboard:
    return FakeDashboard()


@pytest.fixture
def sleeps() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def page(dashboard: FakeDashboard, sleeps: RecordingSleep) -> Page:
    """Page over the fake dashboard with no navigation settle delay."""
    return Page(dashboard, settle_ms=0, sleep=sleeps)


@pytest.fixture
def timing() -> FlowTiming:
    return FlowTiming()
