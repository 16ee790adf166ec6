from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv
from sqlalchemy.engine import URL, make_url


_DB_HOST_ENV = "DB_HOST"
_DB_PORT_ENV = "DB_PORT"
_DB_USER_ENV = "DB_USER"
_DB_PASSWORD_ENV = "DB_PASSWORD"
_DB_NAME_ENV = "DB_NAME"
_DATABASE_URL_ENV = "DATABASE_URL"
_POOL_SIZE_ENV = "DB_POOL_SIZE"
_HOST_ENV = "HOST"
_PORT_ENV = "PORT"
_MAX_LIMIT_ENV = "READINGS_MAX_LIMIT"
_CORS_ORIGINS_ENV = "CORS_ORIGINS"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    db_host: str
    db_port: int
    db_user: str
    db_password: str
    db_name: str
    database_url: Optional[str]
    pool_size: int
    host: str
    port: int
    max_recent_limit: Optional[int]
    cors_origins: Tuple[str, ...]
    log_level: str

    def sqlalchemy_url(self) -> URL:
        """Async SQLAlchemy URL, honouring a full ``DATABASE_URL`` override."""
        if self.database_url:
            return make_url(self.database_url)
        return URL.create(
            "mysql+aiomysql",
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_origins(default: str) -> Tuple[str, ...]:
    raw = _read_str_env(_CORS_ORIGINS_ENV, default)
    origins = tuple(part.strip() for part in raw.split(",") if part.strip())
    return origins or (default,)


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    load_dotenv(override=False)
    return Settings(
        db_host=_read_str_env(_DB_HOST_ENV, "localhost"),
        db_port=_read_positive_int(_DB_PORT_ENV, 3306),
        db_user=_read_str_env(_DB_USER_ENV, "root"),
        db_password=os.getenv(_DB_PASSWORD_ENV, ""),
        db_name=_read_str_env(_DB_NAME_ENV, "arduino_data"),
        database_url=_read_optional_env(_DATABASE_URL_ENV),
        pool_size=_read_positive_int(_POOL_SIZE_ENV, 10),
        host=_read_str_env(_HOST_ENV, "0.0.0.0"),
        port=_read_positive_int(_PORT_ENV, 3000),
        max_recent_limit=_read_positive_int(_MAX_LIMIT_ENV, None),
        cors_origins=_read_origins("*"),
        log_level=_read_log_level("INFO"),
    )
