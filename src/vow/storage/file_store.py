"""JSON-file record store.

One file per collection in ``data_dir``. Commits stage every snapshot to
a temp file in the same directory, fsync it, then swap it into place with
``os.replace``. If a swap fails part-way, files already swapped in that
commit are put back, so the previously persisted snapshots survive.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from vow.errors import StorageError
from vow.storage.base import Collection, RecordStore, check_snapshot_shape

logger = logging.getLogger(__name__)


def write_json_atomic(path: Path, payload: Any) -> None:  # noqa: ANN401
    """Write ``payload`` to ``path`` through a staged temp file and an atomic rename."""
    tmp = _stage(path, payload)
    try:
        os.replace(tmp, path)
    except OSError:
        _discard(tmp)
        raise


def _stage(path: Path, payload: Any) -> Path:  # noqa: ANN401
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2)
            fh.flush()
            os.fsync(fh.fileno())
    except BaseException:
        _discard(tmp)
        raise
    return tmp


def _discard(tmp: Path) -> None:
    with contextlib.suppress(FileNotFoundError):
        tmp.unlink()


class JsonFileRecordStore(RecordStore):
    """File-backed store with atomic-replace writes."""

    def __init__(self, data_dir: str | Path) -> None:
        super().__init__()
        self.data_dir = Path(data_dir)

    def path_for(self, collection: Collection) -> Path:
        return self.data_dir / f"{collection.file_stem}.json"

    async def open(self) -> None:
        try:
            await asyncio.to_thread(self.data_dir.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            msg = f"Cannot create data directory {self.data_dir}: {exc}"
            raise StorageError(msg) from exc

    async def _read(self, collection: Collection) -> Any:  # noqa: ANN401
        return await asyncio.to_thread(self._read_sync, collection)

    async def _write_many(self, snapshots: dict[Collection, Any]) -> None:
        await asyncio.to_thread(self._write_many_sync, snapshots)

    def _read_sync(self, collection: Collection) -> Any:  # noqa: ANN401
        path = self.path_for(collection)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return collection.default()
        except UnicodeDecodeError as exc:
            logger.error("Undecodable snapshot file %s: %s", path, exc)
            msg = f"Corrupt {collection.value} snapshot in {path}"
            raise StorageError(msg) from exc
        except OSError as exc:
            msg = f"Cannot read {path}: {exc}"
            raise StorageError(msg) from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Corrupt snapshot file %s: %s", path, exc)
            msg = f"Corrupt {collection.value} snapshot in {path}"
            raise StorageError(msg) from exc
        return check_snapshot_shape(collection, data)

    def _write_many_sync(self, snapshots: dict[Collection, Any]) -> None:
        staged: list[tuple[Path, Path]] = []
        try:
            for collection, snapshot in snapshots.items():
                check_snapshot_shape(collection, snapshot)
                path = self.path_for(collection)
                staged.append((_stage(path, snapshot), path))
        except (OSError, TypeError, ValueError) as exc:
            for tmp, _ in staged:
                _discard(tmp)
            msg = f"Failed to stage snapshot: {exc}"
            raise StorageError(msg) from exc

        # Previous contents, so a failed swap can be rolled back.
        previous: dict[Path, bytes | None] = {}
        for _, path in staged:
            try:
                previous[path] = path.read_bytes()
            except FileNotFoundError:
                previous[path] = None
            except OSError as exc:
                for tmp, _ in staged:
                    _discard(tmp)
                msg = f"Cannot read {path} before replace: {exc}"
                raise StorageError(msg) from exc

        swapped: list[Path] = []
        for index, (tmp, path) in enumerate(staged):
            try:
                os.replace(tmp, path)
            except OSError as exc:
                for leftover, _ in staged[index:]:
                    _discard(leftover)
                self._restore(swapped, previous)
                msg = f"Failed to replace {path}: {exc}"
                raise StorageError(msg) from exc
            swapped.append(path)

    def _restore(self, swapped: list[Path], previous: dict[Path, bytes | None]) -> None:
        for path in swapped:
            old = previous[path]
            try:
                if old is None:
                    path.unlink(missing_ok=True)
                else:
                    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".bak")
                    with os.fdopen(fd, "wb") as fh:
                        fh.write(old)
                    os.replace(tmp_name, path)
            except OSError:
                logger.exception("Rollback of %s failed", path)
