"""Alembic environment for the VirtuBuild schema.

The URL always comes from ``app.core.config.settings``; ``sqlalchemy.url`` in
alembic.ini is ignored. Online runs go through the async engine and wait for the
database to accept connections, so ``alembic upgrade head`` can run while a
database container is still starting.
"""
import asyncio
import logging
import os
import sys
from logging.config import fileConfig

# env.py lives in backend/alembic/; make the 'app' package importable
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from sqlalchemy import pool
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

import app.models  # noqa: F401  registers every table on Base.metadata
from alembic import context
from app.core.config import settings
from app.db.base import Base

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

logger = logging.getLogger("alembic.env")

MAX_CONNECT_ATTEMPTS = 10
MAX_BACKOFF_S = 10


def _configure(**kwargs) -> None:
    # Batch mode lets SQLite rebuild tables for ALTERs it cannot do in place
    context.configure(target_metadata=Base.metadata, render_as_batch=True, **kwargs)


def _migrate(connection=None) -> None:
    if connection is None:
        _configure(
            url=settings.DATABASE_URL,
            literal_binds=True,
            dialect_opts={"paramstyle": "named"},
        )
    else:
        _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


def _make_engine() -> AsyncEngine:
    connect_args = {"connect_timeout": 10} if settings.DATABASE_URL.startswith("postgresql") else {}
    return create_async_engine(settings.DATABASE_URL, poolclass=pool.NullPool, connect_args=connect_args)


async def _migrate_with_retry(engine: AsyncEngine) -> None:
    for attempt in range(1, MAX_CONNECT_ATTEMPTS + 1):
        try:
            async with engine.connect() as connection:
                await connection.run_sync(_migrate)
            return
        except OperationalError:
            if attempt == MAX_CONNECT_ATTEMPTS:
                raise
            backoff_s = min(2 ** (attempt - 1), MAX_BACKOFF_S)
            logger.warning(
                f"Database not reachable for migrations ({attempt}/{MAX_CONNECT_ATTEMPTS}); "
                f"next attempt in {backoff_s}s"
            )
            await asyncio.sleep(backoff_s)


async def _migrate_online() -> None:
    engine = _make_engine()
    try:
        await _migrate_with_retry(engine)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    _migrate()
else:
    asyncio.run(_migrate_online())
