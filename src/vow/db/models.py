"""ORM models for the SQL-backed record store.

Each collection is persisted as one row holding the full JSON snapshot,
mirroring the whole-collection read/replace contract of the store.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from vow.db.base import Base


class CollectionSnapshot(Base):
    """Latest committed snapshot of one collection."""

    __tablename__ = "collection_snapshots"

    name: Mapped[str] = mapped_column(String(32), primary_key=True)
    payload: Mapped[Any] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
