import asyncio
import os
import sys
from logging.config import fileConfig

from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy import pool
from alembic import context

# ---- make the fym package importable ----
current_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.abspath(os.path.join(current_dir, ".."))
sys.path.insert(0, project_root)

from fym.storage.postgres import ssl_context, needs_ssl, normalize_url  # noqa: E402
from fym.storage.tables import postgres_tables  # noqa: E402

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = postgres_tables.metadata


def get_db_url() -> str:
    """
    DB URL, in order:
    1) ALEMBIC_DB_URL
    2) DATABASE_URL
    3) sqlalchemy.url from alembic.ini
    """
    env_url = os.getenv("ALEMBIC_DB_URL") or os.getenv("DATABASE_URL")
    if env_url:
        return env_url
    return config.get_main_option("sqlalchemy.url")


def run_migrations_offline() -> None:
    """Emit SQL only."""
    context.configure(
        url=normalize_url(get_db_url()),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    url = get_db_url()
    connect_args = {}
    if needs_ssl(url, os.getenv("PGSSL", "").lower() in ("1", "true", "yes", "on")):
        connect_args["ssl"] = ssl_context()

    connectable = create_async_engine(normalize_url(url), poolclass=pool.NullPool, connect_args=connect_args)
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
