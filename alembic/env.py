"""Alembic environment configuration for async SQLAlchemy.

The application reads its DB URL from REBOOTBOT_DATABASE_URL while Alembic
defaults to alembic.ini; the env var wins so migrations land on the same
database file the service uses.
"""

import asyncio
import os
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Import Base and all models so metadata is populated
from rebootbot.database import Base
from rebootbot.models.orm import ActivityLogModel, PlayerModel  # noqa: F401

target_metadata = Base.metadata


def _normalize_async_db_url(url: str) -> str:
    """Coerce a sync SQLite URL into the aiosqlite variant."""
    u = (url or "").strip()
    if u.startswith("sqlite:///") and "aiosqlite" not in u:
        return u.replace("sqlite:///", "sqlite+aiosqlite:///")
    return u


def _maybe_override_alembic_url_from_env() -> None:
    raw = os.environ.get("REBOOTBOT_DATABASE_URL") or os.environ.get("DATABASE_URL")
    if raw:
        config.set_main_option("sqlalchemy.url", _normalize_async_db_url(raw))


def run_migrations_offline() -> None:
    """Emit migration SQL without a live connection."""
    _maybe_override_alembic_url_from_env()
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection, target_metadata=target_metadata, render_as_batch=True
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Run migrations in 'online' mode with an async engine."""
    _maybe_override_alembic_url_from_env()
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
