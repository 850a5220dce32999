"""Reputation engine tests: pure transform, level always consistent."""

import random

import pytest

from vow.errors import ValidationError
from vow.reputation.engine import apply_outcome, compute_level
from vow.users.schemas import User


def _user(**overrides) -> User:
    fields = {"address": "0xabc", "joined_at": 1_000, "last_active": 2_000}
    fields.update(overrides)
    return User(**fields)


class TestComputeLevel:
    @pytest.mark.parametrize(
        "reputation,expected_level",
        [(0, 1), (49, 1), (50, 2), (99, 2), (100, 3), (505, 11)],
    )
    def test_level_boundaries(self, reputation, expected_level):
        assert compute_level(reputation) == expected_level


class TestApplyOutcome:
    def test_completed_from_fresh_user(self):
        user = apply_outcome(_user(), "completed")
        assert user.reputation == 10
        assert user.completed_promises == 1
        assert user.streak == 1
        assert user.level == 1

    def test_failed_from_fresh_user_floors_at_zero(self):
        user = apply_outcome(_user(), "failed")
        assert user.reputation == 0
        assert user.failed_promises == 1
        assert user.streak == 0
        assert user.level == 1

    def test_failed_subtracts_five(self):
        user = apply_outcome(_user(reputation=10, streak=3), "failed")
        assert user.reputation == 5
        assert user.streak == 0

    def test_completion_crosses_level_boundary(self):
        user = apply_outcome(_user(reputation=45, level=1), "completed")
        assert user.reputation == 55
        assert user.level == 2

    def test_failure_drops_level(self):
        user = apply_outcome(_user(reputation=52, level=2), "failed")
        assert user.reputation == 47
        assert user.level == 1

    def test_input_is_not_mutated(self):
        original = _user(reputation=20, streak=2)
        apply_outcome(original, "completed")
        assert original.reputation == 20
        assert original.streak == 2

    def test_unrelated_fields_untouched(self):
        before = _user(total_promises=4, joined_at=111, last_active=222)
        after = apply_outcome(before, "completed")
        assert after.address == before.address
        assert after.total_promises == 4
        assert after.joined_at == 111
        assert after.last_active == 222

    @pytest.mark.parametrize("outcome", ["active", "bogus", ""])
    def test_rejects_non_terminal_outcomes(self, outcome):
        with pytest.raises(ValidationError):
            apply_outcome(_user(), outcome)

    @pytest.mark.parametrize("seed", [1, 7, 42])
    def test_invariants_hold_over_random_sequences(self, seed):
        """reputation >= 0 and level == reputation // 50 + 1 after every step."""
        rng = random.Random(seed)
        user = _user()
        completed = failed = 0
        for _ in range(300):
            outcome = rng.choice(["completed", "failed"])
            user = apply_outcome(user, outcome)
            completed += outcome == "completed"
            failed += outcome == "failed"
            assert user.reputation >= 0
            assert user.level == user.reputation // 50 + 1
        assert user.completed_promises == completed
        assert user.failed_promises == failed
