from __future__ import annotations

import logging
import re
import ssl
from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine

from fym.storage.serializers import PostgresCodec
from fym.storage.sql import SqlStorage
from fym.storage.tables import postgres_tables

logger = logging.getLogger(__name__)

_SSL_HINT = re.compile(r"sslmode=require|neon|supabase|render|heroku|aws", re.IGNORECASE)
# understood by libpq but rejected by asyncpg
_LIBPQ_ONLY = ("sslmode", "channel_binding")


def needs_ssl(database_url: str, force: bool = False) -> bool:
    """Hosted providers require TLS; PGSSL forces it for everything else."""
    return force or bool(_SSL_HINT.search(database_url))


def normalize_url(database_url: str) -> str:
    url = make_url(database_url)
    if url.drivername in ("postgres", "postgresql", "postgresql+psycopg2", "postgresql+psycopg"):
        url = url.set(drivername="postgresql+asyncpg")
    url = url.difference_update_query(_LIBPQ_ONLY)
    return url.render_as_string(hide_password=False)


def ssl_context() -> ssl.SSLContext:
    # managed providers present certificates we do not pin
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


class PostgresStorage(SqlStorage):
    name = "postgres"
    log_tag = "postgres_storage"

    def __init__(self, database_url: str, pg_ssl: bool = False, clock=None,
                 pool_size: Optional[int] = None):
        connect_args = {}
        use_ssl = needs_ssl(database_url, pg_ssl)
        if use_ssl:
            connect_args["ssl"] = ssl_context()
        engine_kwargs = {"echo": False, "pool_pre_ping": True, "connect_args": connect_args}
        if pool_size:
            engine_kwargs["pool_size"] = pool_size
        engine = create_async_engine(normalize_url(database_url), **engine_kwargs)
        super().__init__(engine, postgres_tables, PostgresCodec(), clock)
        logger.info("[postgres_storage] configured (ssl=%s)", use_ssl)

    async def create_schema(self) -> None:
        # migrations own production schema changes; this only fills gaps
        async with self.engine.begin() as conn:
            await conn.run_sync(self.t.metadata.create_all, checkfirst=True)
