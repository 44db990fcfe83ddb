import asyncio
from logging.config import fileConfig

from alembic import context
from loguru import logger
from sqlalchemy import pool
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import create_async_engine

from app.core.config import DATABASE_URL
from app.database import Base
from app import models  # noqa: F401  регистрирует таблицы в Base.metadata

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# SQLite не умеет ALTER для ограничений, поэтому миграции идут через batch-режим
RENDER_AS_BATCH = DATABASE_URL.startswith("sqlite")

CONNECT_ATTEMPTS = 5
CONNECT_RETRY_DELAY = 5


def run_migrations_offline() -> None:
    """Генерирует SQL без подключения к базе (alembic upgrade --sql)."""
    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        render_as_batch=RENDER_AS_BATCH,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def apply_migrations(connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=RENDER_AS_BATCH,
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """
    Применяет миграции через async-движок.
    База в docker может подняться позже приложения, поэтому подключение повторяется.
    """
    engine = create_async_engine(DATABASE_URL, poolclass=pool.NullPool)
    try:
        for attempt in range(1, CONNECT_ATTEMPTS + 1):
            try:
                async with engine.connect() as connection:
                    await connection.run_sync(apply_migrations)
                return
            except (OSError, OperationalError) as e:
                if attempt == CONNECT_ATTEMPTS:
                    raise
                logger.warning(f"Database is not reachable ({e}), attempt {attempt}/{CONNECT_ATTEMPTS}")
                await asyncio.sleep(CONNECT_RETRY_DELAY)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
