"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from tests.helpers import ADMIN
from vow.config import Settings
from vow.main import create_app
from vow.storage import InMemoryRecordStore


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Isolated settings: in-memory store, no Redis, backups under tmp_path."""
    return Settings(
        storage_backend="memory",
        data_dir=str(tmp_path / "data"),
        backup_dir=str(tmp_path / "backups"),
        redis_url="",
        log_format="console",
        strict_transitions=True,
    )


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest_asyncio.fixture
async def client(settings: Settings, store: InMemoryRecordStore) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client over the app, sharing the ``store`` fixture."""
    app = create_app(settings)
    app.state.store = store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {ADMIN}"}
