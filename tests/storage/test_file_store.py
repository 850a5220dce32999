"""JSON file store tests: atomic replace and corrupt vs uninitialized reads."""

from __future__ import annotations

import asyncio
import json
import os

import pytest
import pytest_asyncio

from vow.errors import StorageError
from vow.storage import Collection, JsonFileRecordStore
from vow.storage import file_store


@pytest_asyncio.fixture
async def file_backed(tmp_path):
    store = JsonFileRecordStore(tmp_path / "data")
    await store.open()
    return store


def _leftovers(store: JsonFileRecordStore) -> list[str]:
    return [p.name for p in store.data_dir.iterdir() if p.name.startswith(".")]


class TestLayout:
    @pytest.mark.asyncio
    async def test_open_creates_directory(self, tmp_path):
        store = JsonFileRecordStore(tmp_path / "nested" / "data")
        await store.open()
        assert store.data_dir.is_dir()

    def test_file_names(self, tmp_path):
        store = JsonFileRecordStore(tmp_path)
        names = {c: store.path_for(c).name for c in Collection}
        assert names == {
            Collection.USERS: "users.json",
            Collection.PROMISES: "promises.json",
            Collection.DELETE_REQUESTS: "delete-requests.json",
            Collection.SESSIONS: "sessions.json",
            Collection.GLOBAL_STATS: "global-stats.json",
        }


class TestReads:
    @pytest.mark.asyncio
    async def test_missing_file_returns_default(self, file_backed):
        assert await file_backed.get(Collection.PROMISES) == []
        assert await file_backed.get(Collection.USERS) == {}

    @pytest.mark.asyncio
    async def test_undecodable_file_raises(self, file_backed):
        file_backed.path_for(Collection.USERS).write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError, match="Corrupt"):
            await file_backed.get(Collection.USERS)

    @pytest.mark.asyncio
    async def test_wrong_container_type_raises(self, file_backed):
        file_backed.path_for(Collection.USERS).write_text("[]", encoding="utf-8")
        with pytest.raises(StorageError, match="Corrupt"):
            await file_backed.get(Collection.USERS)

    @pytest.mark.asyncio
    async def test_invalid_utf8_raises(self, file_backed):
        file_backed.path_for(Collection.USERS).write_bytes(b'{"\xff\xfe": 1}')
        with pytest.raises(StorageError, match="Corrupt"):
            await file_backed.get(Collection.USERS)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "collection,content",
        [
            (Collection.PROMISES, '["garbage", null]'),
            (Collection.DELETE_REQUESTS, "[1]"),
            (Collection.USERS, '{"0xabc": "oops"}'),
            (Collection.SESSIONS, '{"s1": null}'),
        ],
    )
    async def test_non_object_entries_raise(self, file_backed, collection, content):
        file_backed.path_for(collection).write_text(content, encoding="utf-8")
        with pytest.raises(StorageError, match="entry of type"):
            await file_backed.get(collection)

    @pytest.mark.asyncio
    async def test_corrupt_file_blocks_mutation(self, file_backed):
        path = file_backed.path_for(Collection.PROMISES)
        path.write_text("garbage", encoding="utf-8")
        with pytest.raises(StorageError):
            async with file_backed.transaction(Collection.PROMISES) as tx:
                promises = await tx.get(Collection.PROMISES)
                tx.put(Collection.PROMISES, promises)
        assert path.read_text(encoding="utf-8") == "garbage"


class TestWrites:
    @pytest.mark.asyncio
    async def test_put_writes_pretty_json(self, file_backed):
        await file_backed.put(Collection.PROMISES, [{"id": "p1"}])
        path = file_backed.path_for(Collection.PROMISES)
        assert json.loads(path.read_text(encoding="utf-8")) == [{"id": "p1"}]
        assert _leftovers(file_backed) == []

    @pytest.mark.asyncio
    async def test_unserializable_snapshot_keeps_previous(self, file_backed):
        await file_backed.put(Collection.USERS, {"0xabc": {"reputation": 1}})
        with pytest.raises(StorageError):
            await file_backed.put(Collection.USERS, {"0xabc": {"reputation": {1, 2}}})
        assert await file_backed.get(Collection.USERS) == {"0xabc": {"reputation": 1}}
        assert _leftovers(file_backed) == []

    @pytest.mark.asyncio
    async def test_failed_swap_rolls_back_whole_commit(self, file_backed, monkeypatch):
        await file_backed.put(Collection.USERS, {"0xabc": {"n": 1}})
        await file_backed.put(Collection.PROMISES, [{"id": "old"}])

        real_replace = os.replace
        calls = {"n": 0}

        def flaky_replace(src, dst):
            calls["n"] += 1
            if calls["n"] == 2:
                raise OSError("disk full")
            return real_replace(src, dst)

        monkeypatch.setattr(file_store.os, "replace", flaky_replace)

        with pytest.raises(StorageError, match="disk full"):
            async with file_backed.transaction(Collection.USERS, Collection.PROMISES) as tx:
                tx.put(Collection.USERS, {"0xabc": {"n": 2}})
                tx.put(Collection.PROMISES, [{"id": "new"}])

        monkeypatch.setattr(file_store.os, "replace", real_replace)
        assert await file_backed.get(Collection.USERS) == {"0xabc": {"n": 1}}
        assert await file_backed.get(Collection.PROMISES) == [{"id": "old"}]
        assert _leftovers(file_backed) == []

    @pytest.mark.asyncio
    async def test_concurrent_updates_are_serialized(self, file_backed):
        async def append(i: int) -> None:
            async with file_backed.transaction(Collection.PROMISES) as tx:
                promises = await tx.get(Collection.PROMISES)
                promises.append({"id": f"p{i}"})
                tx.put(Collection.PROMISES, promises)

        await asyncio.gather(*(append(i) for i in range(20)))
        promises = await file_backed.get(Collection.PROMISES)
        assert sorted(p["id"] for p in promises) == sorted(f"p{i}" for i in range(20))

    def test_write_json_atomic(self, tmp_path):
        target = tmp_path / "backup.json"
        file_store.write_json_atomic(target, {"ok": True})
        assert json.loads(target.read_text(encoding="utf-8")) == {"ok": True}
        assert [p.name for p in tmp_path.iterdir()] == ["backup.json"]
