"""SQL-backed record store (async SQLAlchemy).

A commit writes every buffered snapshot inside one database transaction,
so multi-collection changes are all-or-nothing at the storage level too.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from vow.db.base import Base
from vow.db.models import CollectionSnapshot
from vow.errors import StorageError
from vow.storage.base import Collection, RecordStore, check_snapshot_shape

logger = logging.getLogger(__name__)


class SqlRecordStore(RecordStore):
    """Store each collection snapshot as a JSON row in ``collection_snapshots``."""

    def __init__(self, engine: AsyncEngine) -> None:
        super().__init__()
        self._engine = engine
        self._session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def open(self) -> None:
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            msg = f"Cannot initialize snapshot table: {exc}"
            raise StorageError(msg) from exc

    async def _read(self, collection: Collection) -> Any:  # noqa: ANN401
        try:
            async with self._session_factory() as session:
                row = await session.get(CollectionSnapshot, collection.value)
        except (SQLAlchemyError, ValueError) as exc:
            logger.error("Failed to load %s snapshot: %s", collection.value, exc)
            msg = f"Cannot read {collection.value} snapshot"
            raise StorageError(msg) from exc

        if row is None:
            return collection.default()
        if row.payload is None:
            msg = f"Corrupt {collection.value} snapshot: stored payload is null"
            raise StorageError(msg)
        return check_snapshot_shape(collection, row.payload)

    async def _write_many(self, snapshots: dict[Collection, Any]) -> None:
        for collection, snapshot in snapshots.items():
            check_snapshot_shape(collection, snapshot)

        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session, session.begin():
                for collection, snapshot in snapshots.items():
                    await session.merge(
                        CollectionSnapshot(name=collection.value, payload=snapshot, updated_at=now)
                    )
        except (SQLAlchemyError, TypeError, ValueError) as exc:
            msg = f"Failed to write snapshots: {exc}"
            raise StorageError(msg) from exc
