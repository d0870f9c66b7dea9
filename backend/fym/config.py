# backend/fym/config.py
from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv(dotenv_path=os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env"))

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
]

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class Settings:
    """
    Process configuration read from the environment (.env supported).
    """
    environment: str = "development"
    jwt_secret: str = ""
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7

    use_sqlite: bool = False
    sqlite_db_path: str = "./data/db.sqlite"
    database_url: Optional[str] = None
    pg_ssl: bool = False
    db_pool_size: Optional[int] = None

    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"
    password_hash_rounds: Optional[int] = None
    version: str = "1.0.0"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        environment = (os.getenv("APP_ENV") or os.getenv("NODE_ENV") or "development").lower()

        jwt_secret = os.getenv("JWT_SECRET") or os.getenv("SECRET_KEY")
        if not jwt_secret:
            if environment == "production":
                raise RuntimeError("JWT_SECRET must be set in production")
            jwt_secret = secrets.token_urlsafe(48)
            logger.warning("JWT_SECRET not set, using a random per-process secret (tokens will not survive restarts)")

        sqlite_path = os.getenv("SQLITE_DB_PATH")
        origins = list(DEFAULT_CORS_ORIGINS)
        for origin in (os.getenv("CORS_ORIGIN") or "").split(","):
            origin = origin.strip()
            if origin and origin not in origins:
                origins.append(origin)

        rounds = os.getenv("PASSWORD_HASH_ROUNDS")
        pool_size = os.getenv("DB_POOL_SIZE")

        return cls(
            environment=environment,
            jwt_secret=jwt_secret,
            algorithm=os.getenv("ALGORITHM", "HS256"),
            access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15")),
            refresh_token_expire_days=int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7")),
            use_sqlite=_env_flag("USE_SQLITE") or bool(sqlite_path),
            sqlite_db_path=sqlite_path or "./data/db.sqlite",
            database_url=os.getenv("DATABASE_URL") or None,
            pg_ssl=_env_flag("PGSSL"),
            db_pool_size=int(pool_size) if pool_size else None,
            cors_origins=origins,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            password_hash_rounds=int(rounds) if rounds else None,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
