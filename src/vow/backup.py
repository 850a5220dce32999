"""Full-store backup to a timestamped JSON file."""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from vow.errors import StorageError
from vow.storage import Collection, RecordStore
from vow.storage.file_store import write_json_atomic
from vow.time_utils import backup_stamp, now_ms

logger = structlog.get_logger()


async def backup_data(store: RecordStore, backup_dir: str | Path) -> Path:
    """Write a consistent snapshot of every collection; returns the backup path."""
    async with store.transaction(*Collection) as tx:
        backup = {
            "users": await tx.get(Collection.USERS),
            "promises": await tx.get(Collection.PROMISES),
            "stats": await tx.get(Collection.GLOBAL_STATS),
            "deleteRequests": await tx.get(Collection.DELETE_REQUESTS),
            "sessions": await tx.get(Collection.SESSIONS),
            "backedUpAt": now_ms(),
        }

    target_dir = Path(backup_dir)
    path = target_dir / f"backup-{backup_stamp()}.json"
    try:
        await asyncio.to_thread(target_dir.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(write_json_atomic, path, backup)
    except OSError as exc:
        msg = f"Failed to write backup {path}: {exc}"
        raise StorageError(msg) from exc

    logger.info("backup_written", path=str(path))
    return path
