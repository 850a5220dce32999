"""Global statistics view."""

from __future__ import annotations

from typing import Any

from vow.schemas import Document


class GlobalStats(Document):
    total_users: int = 0
    total_promises: int = 0
    completion_rate: float = 0
    average_reputation: float = 0
    top_performer: str | None = None
    last_updated: int | None = None

    def to_document(self) -> dict[str, Any]:
        # topPerformer is part of the contract even when null.
        return self.model_dump(mode="json", by_alias=True)
