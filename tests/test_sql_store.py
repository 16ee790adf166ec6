"""Tests for the SQL-backed reading store, run against a SQLite file."""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy.engine import make_url

from datastore.sql_store import PersistenceError, ReadingStore, StartupError


def _store(path: Path) -> ReadingStore:
    return ReadingStore(make_url(f"sqlite+aiosqlite:///{path}"))


def test_insert_assigns_increasing_ids_and_lists_newest_first(tmp_path) -> None:
    async def scenario():
        store = _store(tmp_path / "sensor.db")
        try:
            await store.ensure_schema()
            ids = [
                await store.insert(1, device_timestamp=1000, client_timestamp="12:00:00"),
                await store.insert(0),
                await store.insert(1, device_timestamp=3000),
            ]
            recent = await store.list_recent(10)
        finally:
            await store.dispose()
        return ids, recent

    ids, recent = asyncio.run(scenario())

    assert ids == [1, 2, 3]
    assert [reading.id for reading in recent] == [3, 2, 1]
    oldest = recent[-1]
    assert oldest.value == 1
    assert oldest.device_timestamp == 1000
    assert oldest.client_timestamp == "12:00:00"
    assert isinstance(oldest.server_timestamp, datetime)
    assert recent[1].device_timestamp is None
    assert recent[1].client_timestamp is None


def test_list_recent_respects_limit_and_defaults(tmp_path) -> None:
    async def scenario():
        store = _store(tmp_path / "sensor.db")
        try:
            await store.ensure_schema()
            for value in range(5):
                await store.insert(value % 2)
            return (
                await store.list_recent(2),
                await store.list_recent(0),
                await store.list_recent(None),
            )
        finally:
            await store.dispose()

    limited, zero, missing = asyncio.run(scenario())

    assert [reading.id for reading in limited] == [5, 4]
    assert len(zero) == 5
    assert len(missing) == 5


def test_stats_counts_only_binary_values_in_buckets(tmp_path) -> None:
    async def scenario():
        store = _store(tmp_path / "sensor.db")
        try:
            await store.ensure_schema()
            empty = await store.stats()
            for value in (1, 1, 0, 2):
                await store.insert(value)
            return empty, await store.stats()
        finally:
            await store.dispose()

    empty, stats = asyncio.run(scenario())

    assert empty.total_records == 0
    assert empty.count_ones == 0
    assert empty.count_zeros == 0
    assert empty.last_update is None

    assert stats.total_records == 4
    assert stats.count_ones == 2
    assert stats.count_zeros == 1
    assert isinstance(stats.last_update, datetime)


def test_ensure_schema_is_idempotent_and_keeps_rows(tmp_path) -> None:
    path = tmp_path / "sensor.db"

    async def scenario():
        first = _store(path)
        try:
            await first.ensure_schema()
            await first.insert(1)
        finally:
            await first.dispose()

        second = _store(path)
        try:
            await second.ensure_schema()
            await second.ensure_schema()
            return await second.stats(), await second.insert(0)
        finally:
            await second.dispose()

    stats, next_id = asyncio.run(scenario())

    assert stats.total_records == 1
    assert next_id == 2


def test_insert_without_value_raises_persistence_error(tmp_path) -> None:
    async def scenario():
        store = _store(tmp_path / "sensor.db")
        try:
            await store.ensure_schema()
            await store.insert(None)
        finally:
            await store.dispose()

    with pytest.raises(PersistenceError) as excinfo:
        asyncio.run(scenario())

    assert "NOT NULL" in str(excinfo.value)


def test_queries_before_schema_raise_persistence_error(tmp_path) -> None:
    async def scenario():
        store = _store(tmp_path / "sensor.db")
        try:
            await store.stats()
        finally:
            await store.dispose()

    with pytest.raises(PersistenceError):
        asyncio.run(scenario())


def test_ensure_schema_failure_raises_startup_error(tmp_path) -> None:
    async def scenario():
        store = _store(tmp_path / "missing-dir" / "sensor.db")
        try:
            await store.ensure_schema()
        finally:
            await store.dispose()

    with pytest.raises(StartupError):
        asyncio.run(scenario())


def test_server_backends_get_a_bounded_waiting_pool() -> None:
    store = ReadingStore(
        make_url("mysql+aiomysql://root@localhost:3306/arduino_data"), pool_size=10
    )

    pool = store.engine.sync_engine.pool
    assert pool.size() == 10
    assert pool._max_overflow == 0
    assert pool._timeout is None


def test_list_recent_clamps_limits_past_the_driver_range(tmp_path) -> None:
    async def scenario():
        store = _store(tmp_path / "sensor.db")
        try:
            await store.ensure_schema()
            await store.insert(1)
            await store.insert(0)
            return await store.list_recent(10**20)
        finally:
            await store.dispose()

    recent = asyncio.run(scenario())

    assert [reading.id for reading in recent] == [2, 1]


def test_insert_unbindable_value_raises_persistence_error(tmp_path) -> None:
    async def scenario():
        store = _store(tmp_path / "sensor.db")
        try:
            await store.ensure_schema()
            await store.insert(2**70)
        finally:
            await store.dispose()

    with pytest.raises(PersistenceError):
        asyncio.run(scenario())
