"""Promise entity and request models."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from vow.schemas import CamelModel, Document


class PromiseStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({PromiseStatus.COMPLETED, PromiseStatus.FAILED})


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Promise(Document):
    """A user-declared commitment with a deadline."""

    id: str
    address: str
    message: str
    deadline: int
    status: PromiseStatus = PromiseStatus.ACTIVE
    proof: str | None = None
    created_at: int
    updated_at: int
    category: str
    difficulty: Difficulty
    admin_adjusted_progress: int | None = None


class PromiseCreateRequest(CamelModel):
    address: str
    message: str
    deadline: int
    category: str = "general"
    difficulty: Difficulty = Difficulty.MEDIUM


class StatusUpdateRequest(CamelModel):
    status: PromiseStatus
    proof: str | None = None


class ProgressUpdateRequest(CamelModel):
    promise_id: str
    progress: int = Field(description="Admin override, 0-100")
