import logging

from fym.config import Settings
from fym.storage.base import Storage

logger = logging.getLogger(__name__)


def create_storage(settings: Settings, clock=None) -> Storage:
    """
    Pick one engine for the process:
    SQLite when USE_SQLITE/SQLITE_DB_PATH is set, then Postgres when
    DATABASE_URL is set, otherwise in-memory.
    """
    if settings.use_sqlite:
        from fym.storage.sqlite import SqliteStorage
        logger.info("Using SQLite storage at %s", settings.sqlite_db_path)
        return SqliteStorage(settings.sqlite_db_path, clock=clock)
    if settings.database_url:
        from fym.storage.postgres import PostgresStorage
        logger.info("Using Postgres storage")
        return PostgresStorage(settings.database_url, pg_ssl=settings.pg_ssl, clock=clock,
                               pool_size=settings.db_pool_size)
    from fym.storage.memory import MemStorage
    logger.info("Using in-memory storage (data is lost on restart)")
    return MemStorage(clock=clock)


__all__ = ["Storage", "create_storage"]
