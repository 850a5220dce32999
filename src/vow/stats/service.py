"""Aggregation engine: full-scan recomputation of GlobalStats.

totalUsers counts distinct sessions, not owner addresses, and
averageReputation divides total user reputation by that session count.
Both are kept for wire compatibility with existing clients.
"""

from __future__ import annotations

from typing import Any

import structlog

from vow.promises.schemas import Promise, PromiseStatus
from vow.stats.schemas import GlobalStats
from vow.storage import Collection, RecordStore, StoreTransaction
from vow.time_utils import now_ms
from vow.users.schemas import User

logger = structlog.get_logger()

# Collections a stats refresh reads or writes.
STATS_COLLECTIONS = (
    Collection.USERS,
    Collection.PROMISES,
    Collection.SESSIONS,
    Collection.GLOBAL_STATS,
)

PRECISION = 9


def compute_global_stats(
    users: dict[str, Any],
    promises: list[Any],
    sessions: dict[str, Any],
    now: int | None = None,
) -> GlobalStats:
    """Pure aggregation over raw collection snapshots."""
    parsed_users = [User.from_document(doc) for doc in users.values()]
    parsed_promises = [Promise.from_document(doc) for doc in promises]

    total_users = len(sessions)
    total_promises = len(parsed_promises)

    completed = sum(1 for p in parsed_promises if p.status is PromiseStatus.COMPLETED)
    completion_rate = round(completed / total_promises * 100, PRECISION) if total_promises else 0

    total_reputation = sum(u.reputation for u in parsed_users)
    average_reputation = round(total_reputation / total_users, PRECISION) if total_users else 0

    top: User | None = None
    for user in parsed_users:
        if top is None or user.reputation > top.reputation:
            top = user

    return GlobalStats(
        total_users=total_users,
        total_promises=total_promises,
        completion_rate=completion_rate,
        average_reputation=average_reputation,
        top_performer=top.address if top else None,
        last_updated=now if now is not None else now_ms(),
    )


async def refresh_global_stats(tx: StoreTransaction) -> GlobalStats:
    """Recompute inside an open transaction that holds STATS_COLLECTIONS."""
    stats = compute_global_stats(
        await tx.get(Collection.USERS),
        await tx.get(Collection.PROMISES),
        await tx.get(Collection.SESSIONS),
    )
    tx.put(Collection.GLOBAL_STATS, stats.to_document())
    logger.debug(
        "global_stats_updated",
        total_users=stats.total_users,
        total_promises=stats.total_promises,
    )
    return stats


async def recompute(store: RecordStore) -> GlobalStats:
    """Rebuild and persist GlobalStats from the current records."""
    async with store.transaction(*STATS_COLLECTIONS) as tx:
        return await refresh_global_stats(tx)


async def get_global_stats(store: RecordStore) -> GlobalStats:
    """Return the materialized view as last persisted."""
    return GlobalStats.from_document(await store.get(Collection.GLOBAL_STATS))
