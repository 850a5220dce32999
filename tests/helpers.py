"""Test helpers shared across suites."""

from __future__ import annotations

from vow.promises.schemas import Promise
from vow.promises.service import create_promise
from vow.storage import RecordStore

DEADLINE = 1_800_000_000_000
ADMIN = "0xAdmin"


async def make_promise(
    store: RecordStore,
    address: str = "0xabc",
    message: str = "run 5k",
    category: str = "fitness",
    difficulty: str = "easy",
) -> Promise:
    """Create a promise with sensible defaults."""
    return await create_promise(store, address, message, DEADLINE, category, difficulty)
