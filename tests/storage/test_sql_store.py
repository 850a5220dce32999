"""SQL store tests on SQLite (aiosqlite)."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from vow.config import Settings
from vow.database import close_db
from vow.errors import StorageError
from vow.storage import Collection, SqlRecordStore, open_store


@pytest_asyncio.fixture
async def sql_store(tmp_path) -> AsyncGenerator[SqlRecordStore, None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'vow.db'}")
    store = SqlRecordStore(engine)
    await store.open()
    yield store
    await engine.dispose()


class TestSqlRecordStore:
    @pytest.mark.asyncio
    async def test_uninitialized_returns_default(self, sql_store):
        assert await sql_store.get(Collection.DELETE_REQUESTS) == []
        assert (await sql_store.get(Collection.GLOBAL_STATS))["totalUsers"] == 0

    @pytest.mark.asyncio
    async def test_put_then_get(self, sql_store):
        await sql_store.put(Collection.SESSIONS, {"s1": {"ip": "1.2.3.4", "firstVisit": 1, "lastActive": 1}})
        await sql_store.put(Collection.SESSIONS, {"s2": {"ip": "5.6.7.8", "firstVisit": 2, "lastActive": 2}})
        assert list(await sql_store.get(Collection.SESSIONS)) == ["s2"]

    @pytest.mark.asyncio
    async def test_multi_collection_commit(self, sql_store):
        async with sql_store.transaction(Collection.USERS, Collection.PROMISES) as tx:
            tx.put(Collection.USERS, {"0xabc": {"totalPromises": 1}})
            tx.put(Collection.PROMISES, [{"id": "p1"}])
        assert await sql_store.get(Collection.USERS) == {"0xabc": {"totalPromises": 1}}
        assert await sql_store.get(Collection.PROMISES) == [{"id": "p1"}]

    @pytest.mark.asyncio
    async def test_exception_leaves_prior_state(self, sql_store):
        await sql_store.put(Collection.PROMISES, [{"id": "keep"}])
        with pytest.raises(ValueError):
            async with sql_store.transaction(Collection.PROMISES) as tx:
                tx.put(Collection.PROMISES, [])
                raise ValueError("abort")
        assert await sql_store.get(Collection.PROMISES) == [{"id": "keep"}]

    @pytest.mark.asyncio
    async def test_wrong_shaped_row_is_corrupt(self, sql_store):
        async with sql_store._engine.begin() as conn:  # noqa: SLF001
            await conn.execute(
                text("INSERT INTO collection_snapshots (name, payload, updated_at) VALUES (:n, :p, :u)"),
                {"n": "users", "p": "[1, 2, 3]", "u": "2026-01-01 00:00:00.000000"},
            )
        with pytest.raises(StorageError):
            await sql_store.get(Collection.USERS)

    @pytest.mark.asyncio
    async def test_null_payload_is_corrupt(self, sql_store):
        async with sql_store._engine.begin() as conn:  # noqa: SLF001
            await conn.execute(
                text("INSERT INTO collection_snapshots (name, payload, updated_at) VALUES (:n, :p, :u)"),
                {"n": "promises", "p": "null", "u": "2026-01-01 00:00:00.000000"},
            )
        with pytest.raises(StorageError, match="null"):
            await sql_store.get(Collection.PROMISES)

    @pytest.mark.asyncio
    async def test_open_is_idempotent(self, sql_store):
        await sql_store.put(Collection.PROMISES, [{"id": "p1"}])
        await sql_store.open()
        assert await sql_store.get(Collection.PROMISES) == [{"id": "p1"}]


class TestOpenStore:
    @pytest.mark.asyncio
    async def test_sql_backend_from_settings(self, tmp_path):
        settings = Settings(storage_backend="sql", database_url=f"sqlite+aiosqlite:///{tmp_path / 'app.db'}")
        store = await open_store(settings)
        try:
            assert isinstance(store, SqlRecordStore)
            await store.put(Collection.PROMISES, [{"id": "p1"}])
            assert await store.get(Collection.PROMISES) == [{"id": "p1"}]
        finally:
            await close_db()
