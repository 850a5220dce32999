"""Reputation engine: pure user transform for a promise outcome.

completed: +10 reputation, +1 completed, +1 streak
failed:    -5 reputation (floored at 0), +1 failed, streak reset
Level is always recomputed from reputation: floor(reputation / 50) + 1.
"""

from __future__ import annotations

from vow.errors import ValidationError
from vow.promises.schemas import PromiseStatus
from vow.users.schemas import User

COMPLETION_REWARD = 10
FAILURE_PENALTY = 5
REPUTATION_PER_LEVEL = 50


def compute_level(reputation: int) -> int:
    """Level for a reputation score; level 1 starts at 0."""
    return max(0, reputation) // REPUTATION_PER_LEVEL + 1


def apply_outcome(user: User, outcome: PromiseStatus | str) -> User:
    """Return a copy of ``user`` with ``outcome`` applied. Never mutates the input."""
    try:
        outcome = PromiseStatus(outcome)
    except ValueError as exc:
        msg = f"Unknown outcome: {outcome}"
        raise ValidationError(msg) from exc

    if outcome is PromiseStatus.COMPLETED:
        reputation = user.reputation + COMPLETION_REWARD
        updates = {
            "completed_promises": user.completed_promises + 1,
            "streak": user.streak + 1,
        }
    elif outcome is PromiseStatus.FAILED:
        reputation = max(0, user.reputation - FAILURE_PENALTY)
        updates = {
            "failed_promises": user.failed_promises + 1,
            "streak": 0,
        }
    else:
        msg = f"Outcome must be completed or failed, got {outcome.value}"
        raise ValidationError(msg)

    updates["reputation"] = reputation
    updates["level"] = compute_level(reputation)
    return user.model_copy(update=updates)
