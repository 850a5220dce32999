"""User records: lazy creation, reads, leaderboard and export."""

from __future__ import annotations

from typing import Any

import structlog

from vow.errors import NotFoundError, ValidationError
from vow.promises.schemas import Promise
from vow.storage import Collection, RecordStore
from vow.time_utils import now_ms
from vow.users.schemas import LeaderboardEntry, User, UserExport

logger = structlog.get_logger()


def normalize_address(address: str) -> str:
    """User key: trimmed, lowercased address."""
    return address.strip().lower()


def new_user(address: str, now: int | None = None) -> User:
    """Zero-valued stats for a first-time owner."""
    if now is None:
        now = now_ms()
    return User(address=address, joined_at=now, last_active=now)


def get_or_create_user(users: dict[str, Any], address: str, now: int | None = None) -> User:
    """Look up ``address`` in a users snapshot, creating the record in place if absent."""
    key = normalize_address(address)
    if key not in users:
        users[key] = new_user(address.strip(), now).to_document()
        logger.info("user_created", address=key)
    return User.from_document(users[key])


def store_user(users: dict[str, Any], user: User, now: int | None = None) -> User:
    """Write ``user`` back into a users snapshot, stamping lastActive."""
    user = user.model_copy(update={"last_active": now if now is not None else now_ms()})
    users[normalize_address(user.address)] = user.to_document()
    return user


async def get_user(store: RecordStore, address: str) -> User:
    """Fetch one user by address (case-insensitive)."""
    if not address or not address.strip():
        msg = "Address is required"
        raise ValidationError(msg)
    users = await store.get(Collection.USERS)
    doc = users.get(normalize_address(address))
    if doc is None:
        msg = f"User {address} not found"
        raise NotFoundError(msg)
    return User.from_document(doc)


async def get_users(store: RecordStore) -> dict[str, User]:
    users = await store.get(Collection.USERS)
    return {key: User.from_document(doc) for key, doc in users.items()}


async def get_leaderboard(store: RecordStore, limit: int = 10) -> list[LeaderboardEntry]:
    """Top users by reputation; ties keep storage order."""
    if limit < 0:
        msg = "Limit must be non-negative"
        raise ValidationError(msg)
    users = await get_users(store)
    ranked = sorted(users.values(), key=lambda u: u.reputation, reverse=True)
    return [
        LeaderboardEntry(
            address=u.address,
            reputation=u.reputation,
            completed_promises=u.completed_promises,
            level=u.level,
            streak=u.streak,
        )
        for u in ranked[:limit]
    ]


async def export_user_data(store: RecordStore, address: str) -> UserExport:
    """Consistent snapshot of a user and every promise they own."""
    key = normalize_address(address)
    async with store.transaction(Collection.USERS, Collection.PROMISES) as tx:
        users = await tx.get(Collection.USERS)
        promises = await tx.get(Collection.PROMISES)

    if key not in users:
        msg = f"User {address} not found"
        raise NotFoundError(msg)

    owned = [Promise.from_document(p) for p in promises if normalize_address(p.get("address", "")) == key]
    return UserExport(user=User.from_document(users[key]), promises=owned, exported_at=now_ms())
