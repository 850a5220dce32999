"""Promise lifecycle: creation, status transitions, admin progress, removal."""

from __future__ import annotations

from typing import Any

import structlog

from vow.errors import InvalidTransitionError, NotFoundError, ValidationError
from vow.promises.schemas import TERMINAL_STATUSES, Difficulty, Promise, PromiseStatus
from vow.reputation.engine import apply_outcome
from vow.stats.service import STATS_COLLECTIONS, refresh_global_stats
from vow.storage import Collection, RecordStore, StoreTransaction
from vow.time_utils import generate_id, now_ms
from vow.users.schemas import User
from vow.users.service import get_or_create_user, normalize_address, store_user

logger = structlog.get_logger()

PROGRESS_MIN = 0
PROGRESS_MAX = 100


def _require_text(value: str | None, field: str) -> str:
    if value is None or not str(value).strip():
        msg = f"{field} is required"
        raise ValidationError(msg)
    return str(value)


def _find_index(promises: list[dict[str, Any]], promise_id: str) -> int:
    for index, doc in enumerate(promises):
        if doc.get("id") == promise_id:
            return index
    msg = f"Promise {promise_id} not found"
    raise NotFoundError(msg)


async def create_promise(
    store: RecordStore,
    address: str,
    message: str,
    deadline: int,
    category: str = "general",
    difficulty: Difficulty | str = Difficulty.MEDIUM,
) -> Promise:
    """Create an active promise, lazily creating its owner.

    Deadlines are recorded as given; enforcing them is not done here.
    """
    address = _require_text(address, "Address").strip()
    message = _require_text(message, "Message")
    if isinstance(deadline, bool) or not isinstance(deadline, int):
        msg = "Deadline must be an integer timestamp"
        raise ValidationError(msg)
    try:
        difficulty = Difficulty(difficulty)
    except ValueError as exc:
        msg = f"Invalid difficulty: {difficulty}"
        raise ValidationError(msg) from exc
    category = (category or "").strip() or "general"

    now = now_ms()
    async with store.transaction(*STATS_COLLECTIONS) as tx:
        users = await tx.get(Collection.USERS)
        promises = await tx.get(Collection.PROMISES)

        owner = get_or_create_user(users, address, now)
        promise = Promise(
            id=generate_id("promise", now),
            address=address,
            message=message,
            deadline=deadline,
            status=PromiseStatus.ACTIVE,
            created_at=now,
            updated_at=now,
            category=category,
            difficulty=difficulty,
        )
        promises.append(promise.to_document())
        store_user(users, owner.model_copy(update={"total_promises": owner.total_promises + 1}), now)

        tx.put(Collection.USERS, users)
        tx.put(Collection.PROMISES, promises)
        await refresh_global_stats(tx)

    logger.info("promise_created", promise_id=promise.id, address=normalize_address(address))
    return promise


async def update_promise_status(
    store: RecordStore,
    promise_id: str,
    new_status: PromiseStatus | str,
    proof: str | None = None,
    *,
    strict: bool = True,
) -> Promise:
    """Move a promise to completed or failed and apply the outcome to its owner.

    With ``strict`` a terminal promise cannot transition again. Without it,
    a status change on a terminal promise re-applies the reputation engine.
    """
    try:
        status = PromiseStatus(new_status)
    except ValueError as exc:
        msg = f"Invalid status: {new_status}"
        raise ValidationError(msg) from exc
    if status not in TERMINAL_STATUSES:
        msg = "Status must be completed or failed"
        raise ValidationError(msg)

    now = now_ms()
    async with store.transaction(*STATS_COLLECTIONS) as tx:
        promises = await tx.get(Collection.PROMISES)
        index = _find_index(promises, promise_id)
        current = Promise.from_document(promises[index])

        if strict and current.status in TERMINAL_STATUSES:
            msg = f"Promise {promise_id} is already {current.status.value}"
            raise InvalidTransitionError(msg)

        if current.status != status:
            users = await tx.get(Collection.USERS)
            key = normalize_address(current.address)
            if key not in users:
                msg = f"Owner {current.address} of promise {promise_id} not found"
                raise NotFoundError(msg)
            owner = apply_outcome(User.from_document(users[key]), status)
            store_user(users, owner, now)
            tx.put(Collection.USERS, users)
            logger.info(
                "reputation_updated",
                address=key,
                outcome=status.value,
                reputation=owner.reputation,
                level=owner.level,
            )

        updates: dict[str, Any] = {"status": status, "updated_at": now}
        if proof is not None:
            updates["proof"] = proof
        promise = current.model_copy(update=updates)
        promises[index] = promise.to_document()
        tx.put(Collection.PROMISES, promises)
        await refresh_global_stats(tx)

    logger.info("promise_status_updated", promise_id=promise_id, status=status.value)
    return promise


async def admin_set_progress(store: RecordStore, promise_id: str, progress: int) -> Promise:
    """Set the admin progress override; status and reputation are untouched."""
    if isinstance(progress, bool) or not isinstance(progress, int) or not PROGRESS_MIN <= progress <= PROGRESS_MAX:
        msg = f"Progress must be an integer between {PROGRESS_MIN} and {PROGRESS_MAX}"
        raise ValidationError(msg)

    async with store.transaction(Collection.PROMISES) as tx:
        promises = await tx.get(Collection.PROMISES)
        index = _find_index(promises, promise_id)
        promise = Promise.from_document(promises[index]).model_copy(
            update={"admin_adjusted_progress": progress, "updated_at": now_ms()}
        )
        promises[index] = promise.to_document()
        tx.put(Collection.PROMISES, promises)

    logger.info("promise_progress_adjusted", promise_id=promise_id, progress=progress)
    return promise


async def remove_promise(tx: StoreTransaction, promise_id: str) -> Promise:
    """Permanently remove a promise and decrement its owner's total (floor 0).

    Runs inside the caller's transaction, which must hold USERS and PROMISES.
    """
    promises = await tx.get(Collection.PROMISES)
    index = _find_index(promises, promise_id)
    removed = Promise.from_document(promises.pop(index))
    tx.put(Collection.PROMISES, promises)

    users = await tx.get(Collection.USERS)
    key = normalize_address(removed.address)
    if key in users:
        owner = User.from_document(users[key])
        store_user(users, owner.model_copy(update={"total_promises": max(0, owner.total_promises - 1)}))
        tx.put(Collection.USERS, users)

    logger.info("promise_deleted", promise_id=promise_id, address=key)
    return removed


async def get_promise(store: RecordStore, promise_id: str) -> Promise:
    promises = await store.get(Collection.PROMISES)
    return Promise.from_document(promises[_find_index(promises, promise_id)])


async def get_promises(
    store: RecordStore,
    address: str | None = None,
    status: PromiseStatus | str | None = None,
    category: str | None = None,
) -> list[Promise]:
    """List promises, optionally filtered by owner (case-insensitive), status and category."""
    wanted: PromiseStatus | None = None
    if status:
        try:
            wanted = PromiseStatus(status)
        except ValueError as exc:
            msg = f"Invalid status filter: {status}"
            raise ValidationError(msg) from exc

    promises = [Promise.from_document(doc) for doc in await store.get(Collection.PROMISES)]
    if address:
        key = normalize_address(address)
        promises = [p for p in promises if normalize_address(p.address) == key]
    if wanted is not None:
        promises = [p for p in promises if p.status is wanted]
    if category:
        promises = [p for p in promises if p.category == category]
    return promises
