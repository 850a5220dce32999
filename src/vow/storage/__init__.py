"""Record store backends and factory."""

from vow.config import Settings
from vow.database import init_db
from vow.storage.base import Collection, RecordStore, StoreTransaction
from vow.storage.file_store import JsonFileRecordStore
from vow.storage.memory import InMemoryRecordStore
from vow.storage.sql_store import SqlRecordStore

__all__ = [
    "Collection",
    "InMemoryRecordStore",
    "JsonFileRecordStore",
    "RecordStore",
    "SqlRecordStore",
    "StoreTransaction",
    "open_store",
]


async def open_store(settings: Settings) -> RecordStore:
    """Build and open the store selected by ``settings.storage_backend``."""
    store: RecordStore
    if settings.storage_backend == "memory":
        store = InMemoryRecordStore()
    elif settings.storage_backend == "sql":
        engine = await init_db(settings.database_url)
        store = SqlRecordStore(engine)
    else:
        store = JsonFileRecordStore(settings.data_dir)
    await store.open()
    return store
