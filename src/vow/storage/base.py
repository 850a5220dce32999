"""Record store contract: whole-collection snapshots behind per-collection locks.

Every mutation is a read -> modify in memory -> write cycle over a full
collection snapshot. Mutations run inside ``RecordStore.transaction``,
which holds the lock of every collection it touches until its buffered
writes are committed, so concurrent callers can neither interleave a
read-modify-write nor observe half of a multi-collection change.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from contextlib import AsyncExitStack, asynccontextmanager
from enum import Enum
from typing import Any

from vow.errors import StorageError

logger = logging.getLogger(__name__)


def _empty_stats() -> dict[str, Any]:
    return {
        "totalUsers": 0,
        "totalPromises": 0,
        "completionRate": 0,
        "averageReputation": 0,
        "topPerformer": None,
        "lastUpdated": None,
    }


class Collection(str, Enum):
    """Persisted collections. Declaration order is the global lock order."""

    USERS = "users"
    PROMISES = "promises"
    DELETE_REQUESTS = "delete_requests"
    SESSIONS = "sessions"
    GLOBAL_STATS = "global_stats"

    @property
    def file_stem(self) -> str:
        """File name stem used by file-backed stores."""
        return _FILE_STEMS[self]

    @property
    def container(self) -> type:
        """Expected top-level JSON type of a snapshot."""
        return _CONTAINERS[self]

    def default(self) -> Any:  # noqa: ANN401
        """Snapshot returned for a collection that was never written."""
        return _DEFAULTS[self]()


_FILE_STEMS: dict[Collection, str] = {
    Collection.USERS: "users",
    Collection.PROMISES: "promises",
    Collection.DELETE_REQUESTS: "delete-requests",
    Collection.SESSIONS: "sessions",
    Collection.GLOBAL_STATS: "global-stats",
}

_CONTAINERS: dict[Collection, type] = {
    Collection.USERS: dict,
    Collection.PROMISES: list,
    Collection.DELETE_REQUESTS: list,
    Collection.SESSIONS: dict,
    Collection.GLOBAL_STATS: dict,
}

_DEFAULTS: dict[Collection, Callable[[], Any]] = {
    Collection.USERS: dict,
    Collection.PROMISES: list,
    Collection.DELETE_REQUESTS: list,
    Collection.SESSIONS: dict,
    Collection.GLOBAL_STATS: _empty_stats,
}

_LOCK_ORDER: list[Collection] = list(Collection)

# Collections whose entries are entity documents (list items or dict values).
_DOCUMENT_COLLECTIONS = frozenset(
    {Collection.USERS, Collection.PROMISES, Collection.DELETE_REQUESTS, Collection.SESSIONS}
)


def check_snapshot_shape(collection: Collection, snapshot: Any) -> Any:  # noqa: ANN401
    """Raise StorageError if a snapshot has the wrong container type or non-object entries."""
    if not isinstance(snapshot, collection.container):
        msg = (
            f"Corrupt {collection.value} snapshot: expected {collection.container.__name__}, "
            f"got {type(snapshot).__name__}"
        )
        raise StorageError(msg)
    if collection in _DOCUMENT_COLLECTIONS:
        entries = snapshot if isinstance(snapshot, list) else snapshot.values()
        for entry in entries:
            if not isinstance(entry, dict):
                msg = f"Corrupt {collection.value} snapshot: entry of type {type(entry).__name__}"
                raise StorageError(msg)
    return snapshot


class StoreTransaction:
    """Buffered view over the collections locked by one logical operation."""

    def __init__(self, store: RecordStore, collections: list[Collection]) -> None:
        self._store = store
        self._collections = frozenset(collections)
        self._loaded: dict[Collection, Any] = {}
        self.pending: dict[Collection, Any] = {}

    def _check(self, collection: Collection) -> None:
        if collection not in self._collections:
            msg = f"Collection {collection.value} is not locked by this transaction"
            raise RuntimeError(msg)

    async def get(self, collection: Collection) -> Any:  # noqa: ANN401
        """Return the snapshot, including writes buffered earlier in this transaction."""
        self._check(collection)
        if collection in self.pending:
            return self.pending[collection]
        if collection not in self._loaded:
            self._loaded[collection] = await self._store._read(collection)  # noqa: SLF001
        return self._loaded[collection]

    def put(self, collection: Collection, snapshot: Any) -> None:  # noqa: ANN401
        """Buffer a full replacement snapshot; written on commit."""
        self._check(collection)
        self.pending[collection] = snapshot


class RecordStore(ABC):
    """Durable keyed collections with atomic replace and per-collection exclusion."""

    def __init__(self) -> None:
        self._locks: dict[Collection, asyncio.Lock] = {c: asyncio.Lock() for c in Collection}

    async def open(self) -> None:
        """Prepare the backing medium. Idempotent."""

    async def close(self) -> None:
        """Release the backing medium."""

    async def get(self, collection: Collection) -> Any:  # noqa: ANN401
        """Read one collection snapshot under its lock."""
        async with self._locks[collection]:
            return await self._read(collection)

    async def put(self, collection: Collection, snapshot: Any) -> None:  # noqa: ANN401
        """Replace one collection snapshot under its lock."""
        async with self._locks[collection]:
            await self._commit({collection: snapshot})

    @asynccontextmanager
    async def transaction(self, *collections: Collection) -> AsyncIterator[StoreTransaction]:
        """Lock ``collections`` in global order, yield a buffer, commit on clean exit.

        An exception raised inside the block discards every buffered write.
        """
        ordered = sorted(set(collections), key=_LOCK_ORDER.index)
        async with AsyncExitStack() as stack:
            for collection in ordered:
                await stack.enter_async_context(self._locks[collection])
            tx = StoreTransaction(self, ordered)
            yield tx
            if tx.pending:
                await self._commit(tx.pending)
                logger.debug("Committed %s", ", ".join(c.value for c in tx.pending))

    async def _commit(self, snapshots: dict[Collection, Any]) -> None:
        """Run the backend write to completion before the locks are released.

        A cancellation arriving mid-write is deferred until the write has
        finished, then re-raised.
        """
        write = asyncio.ensure_future(self._write_many(snapshots))
        cancelled = False
        while not write.done():
            try:
                await asyncio.shield(write)
            except asyncio.CancelledError:
                cancelled = True
        if cancelled:
            if not write.cancelled():
                write.exception()
            raise asyncio.CancelledError
        write.result()

    @abstractmethod
    async def _read(self, collection: Collection) -> Any:  # noqa: ANN401
        """Load a snapshot; default when uninitialized, StorageError when corrupt."""

    @abstractmethod
    async def _write_many(self, snapshots: dict[Collection, Any]) -> None:
        """Persist several snapshots so that a failure leaves all prior snapshots intact."""
