from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.schema import CreateIndex, CreateTable

from fym.storage.serializers import SqliteCodec
from fym.storage.sql import SqlStorage
from fym.storage.tables import sqlite_tables

logger = logging.getLogger(__name__)


class SqliteStorage(SqlStorage):
    """Single-file embedded database; the file survives restarts."""

    name = "sqlite"
    log_tag = "sqlite_storage"

    def __init__(self, db_path: str, clock=None):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_async_engine(f"sqlite+aiosqlite:///{self.db_path}", echo=False)
        super().__init__(engine, sqlite_tables, SqliteCodec(), clock)

    async def create_schema(self) -> None:
        async with self.engine.begin() as conn:
            for table in self.t.metadata.sorted_tables:
                await conn.execute(CreateTable(table, if_not_exists=True))
                for index in table.indexes:
                    await conn.execute(CreateIndex(index, if_not_exists=True))
        logger.info("[sqlite_storage] schema ready at %s", self.db_path)
