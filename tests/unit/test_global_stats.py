"""Aggregation tests: pure computation over raw snapshots."""

from __future__ import annotations

import pytest

from vow.errors import StorageError
from vow.stats.service import compute_global_stats


def _user(address: str, reputation: int) -> dict:
    return {
        "address": address,
        "reputation": reputation,
        "completedPromises": 0,
        "failedPromises": 0,
        "totalPromises": 0,
        "streak": 0,
        "level": reputation // 50 + 1,
        "joinedAt": 1,
        "lastActive": 1,
    }


def _promise(pid: str, status: str) -> dict:
    return {
        "id": pid,
        "address": "0xabc",
        "message": "m",
        "deadline": 1,
        "status": status,
        "createdAt": 1,
        "updatedAt": 1,
        "category": "general",
        "difficulty": "easy",
    }


def _sessions(n: int) -> dict:
    return {f"s{i}": {"ip": "127.0.0.1", "firstVisit": 1, "lastActive": 1} for i in range(n)}


class TestComputeGlobalStats:
    def test_empty_store(self):
        stats = compute_global_stats({}, [], {}, now=123)
        assert stats.total_users == 0
        assert stats.total_promises == 0
        assert stats.completion_rate == 0
        assert stats.average_reputation == 0
        assert stats.top_performer is None
        assert stats.last_updated == 123

    def test_completion_rate_rounded_to_nine_digits(self):
        promises = [_promise("a", "completed"), _promise("b", "active"), _promise("c", "failed")]
        stats = compute_global_stats({}, promises, {})
        assert stats.completion_rate == 33.333333333

    def test_completion_rate_full(self):
        stats = compute_global_stats({}, [_promise("a", "completed")], {})
        assert stats.completion_rate == 100

    def test_total_users_counts_sessions_not_addresses(self):
        users = {"0xa": _user("0xa", 10), "0xb": _user("0xb", 5)}
        stats = compute_global_stats(users, [], _sessions(3))
        assert stats.total_users == 3
        assert stats.average_reputation == 5

    def test_average_reputation_zero_without_sessions(self):
        stats = compute_global_stats({"0xa": _user("0xa", 40)}, [], {})
        assert stats.average_reputation == 0

    def test_average_reputation_rounded(self):
        users = {"0xa": _user("0xa", 10)}
        stats = compute_global_stats(users, [], _sessions(3))
        assert stats.average_reputation == 3.333333333

    def test_top_performer_is_max_reputation(self):
        users = {"0xa": _user("0xa", 10), "0xb": _user("0xB", 30), "0xc": _user("0xc", 20)}
        assert compute_global_stats(users, [], {}).top_performer == "0xB"

    def test_top_performer_ties_keep_first(self):
        users = {"0xa": _user("0xa", 30), "0xb": _user("0xb", 30)}
        assert compute_global_stats(users, [], {}).top_performer == "0xa"

    def test_top_performer_with_all_zero_reputation(self):
        users = {"0xa": _user("0xa", 0), "0xb": _user("0xb", 0)}
        assert compute_global_stats(users, [], {}).top_performer == "0xa"

    def test_corrupt_user_document_raises(self):
        with pytest.raises(StorageError):
            compute_global_stats({"0xa": {"address": "0xa", "reputation": "lots"}}, [], {})
