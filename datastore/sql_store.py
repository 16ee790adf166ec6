from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import (
    TIMESTAMP,
    BigInteger,
    Column,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    case,
    func,
    insert,
    select,
    text,
)
from sqlalchemy.engine import URL
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from models.records import Reading, ReadingStats
from settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 100
# Largest LIMIT every supported driver can bind (signed 64-bit).
MAX_ROW_LIMIT = 2**63 - 1

metadata = MetaData()

sensor_data = Table(
    "sensor_data",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("value", Integer, nullable=False),
    Column("arduino_timestamp", BigInteger, nullable=True),
    Column("pc_timestamp", String(50), nullable=True),
    Column("server_timestamp", TIMESTAMP, server_default=func.current_timestamp()),
    Index("idx_timestamp", "server_timestamp"),
)


class StartupError(RuntimeError):
    """Database or table provisioning failed; the service must not start."""


class PersistenceError(RuntimeError):
    """A single insert or read failed."""


# Drivers raise these directly, unwrapped, for parameters they cannot bind.
_STATEMENT_ERRORS = (SQLAlchemyError, OverflowError, TypeError, ValueError)


def _error_message(exc: Exception) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


class ReadingStore:
    """Pooled access to the ``sensor_data`` table."""

    def __init__(self, url: URL, pool_size: int = 10) -> None:
        self.url = url
        engine_options: dict[str, Any] = {}
        if not self._is_sqlite:
            # Callers past the pool bound wait for a free connection instead of failing.
            engine_options.update(pool_size=pool_size, max_overflow=0, pool_timeout=None)
        self.engine: AsyncEngine = create_async_engine(url, **engine_options)

    @property
    def _is_sqlite(self) -> bool:
        return self.url.get_backend_name() == "sqlite"

    async def ensure_schema(self) -> None:
        """Create the database (server backends) and table if they are missing."""
        try:
            if not self._is_sqlite and self.url.database:
                await self._create_database()
            async with self.engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
        except SQLAlchemyError as exc:
            raise StartupError(
                f"Failed to initialise database {self.url.database!r}: {_error_message(exc)}"
            ) from exc
        except OSError as exc:
            raise StartupError(
                f"Failed to reach database {self.url.database!r}: {exc}"
            ) from exc
        logger.info("Table initialized", extra={"database": self.url.database})

    async def _create_database(self) -> None:
        server_engine = create_async_engine(self.url.set(database=None), poolclass=NullPool)
        try:
            quoted = server_engine.dialect.identifier_preparer.quote_identifier(
                self.url.database
            )
            async with server_engine.begin() as conn:
                await conn.execute(text(f"CREATE DATABASE IF NOT EXISTS {quoted}"))
        finally:
            await server_engine.dispose()
        logger.info(
            "Database created or already exists", extra={"database": self.url.database}
        )

    async def insert(
        self,
        value: Any,
        device_timestamp: Optional[int] = None,
        client_timestamp: Any = None,
    ) -> int:
        statement = insert(sensor_data).values(
            value=value,
            arduino_timestamp=device_timestamp,
            pc_timestamp=client_timestamp,
        )
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(statement)
        except _STATEMENT_ERRORS as exc:
            raise PersistenceError(_error_message(exc)) from exc
        return int(result.inserted_primary_key[0])

    async def list_recent(self, limit: Optional[int] = None) -> list[Reading]:
        """Return up to ``limit`` readings, newest id first."""
        if limit is None or limit <= 0:
            limit = DEFAULT_RECENT_LIMIT
        limit = min(limit, MAX_ROW_LIMIT)
        statement = select(sensor_data).order_by(sensor_data.c.id.desc()).limit(limit)
        try:
            async with self.engine.connect() as conn:
                rows = (await conn.execute(statement)).all()
        except _STATEMENT_ERRORS as exc:
            raise PersistenceError(_error_message(exc)) from exc
        return [
            Reading(
                id=row.id,
                value=row.value,
                device_timestamp=row.arduino_timestamp,
                client_timestamp=row.pc_timestamp,
                server_timestamp=row.server_timestamp,
            )
            for row in rows
        ]

    async def stats(self) -> ReadingStats:
        value = sensor_data.c.value
        statement = select(
            func.count().label("total_records"),
            func.sum(case((value == 1, 1), else_=0)).label("count_ones"),
            func.sum(case((value == 0, 1), else_=0)).label("count_zeros"),
            func.max(sensor_data.c.server_timestamp).label("last_update"),
        ).select_from(sensor_data)
        try:
            async with self.engine.connect() as conn:
                row = (await conn.execute(statement)).one()
        except SQLAlchemyError as exc:
            raise PersistenceError(_error_message(exc)) from exc
        # SUM over an empty table is NULL.
        return ReadingStats(
            total_records=int(row.total_records or 0),
            count_ones=int(row.count_ones or 0),
            count_zeros=int(row.count_zeros or 0),
            last_update=row.last_update,
        )

    async def dispose(self) -> None:
        await self.engine.dispose()


def build_store(settings: Settings) -> ReadingStore:
    return ReadingStore(settings.sqlalchemy_url(), pool_size=settings.pool_size)
