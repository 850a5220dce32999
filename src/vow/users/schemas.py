"""User entity and read-side response models."""

from __future__ import annotations

from pydantic import BaseModel

from vow.promises.schemas import Promise
from vow.schemas import CamelModel, Document


class User(Document):
    """Reputation record for one owner address."""

    address: str
    reputation: int = 0
    completed_promises: int = 0
    failed_promises: int = 0
    total_promises: int = 0
    streak: int = 0
    level: int = 1
    joined_at: int
    last_active: int


class LeaderboardEntry(CamelModel):
    address: str
    reputation: int
    completed_promises: int
    level: int
    streak: int


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntry]


class UserExport(CamelModel):
    """Everything stored about one address."""

    user: User
    promises: list[Promise]
    exported_at: int
