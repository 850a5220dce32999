"""In-memory record store."""

from __future__ import annotations

import copy
from typing import Any

from vow.storage.base import Collection, RecordStore, check_snapshot_shape


class InMemoryRecordStore(RecordStore):
    """Process-local store for tests and ephemeral runs."""

    def __init__(self) -> None:
        super().__init__()
        self._data: dict[Collection, Any] = {}

    async def _read(self, collection: Collection) -> Any:  # noqa: ANN401
        if collection not in self._data:
            return collection.default()
        return copy.deepcopy(check_snapshot_shape(collection, self._data[collection]))

    async def _write_many(self, snapshots: dict[Collection, Any]) -> None:
        staged = {c: copy.deepcopy(check_snapshot_shape(c, s)) for c, s in snapshots.items()}
        self._data.update(staged)
