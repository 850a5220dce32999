"""Moderation workflow: delete requests gating permanent promise removal.

State progression: pending -> approved | rejected (both terminal).
Approval cascades: the promise is removed, its owner's total is
decremented and GlobalStats are refreshed, all in one transaction.
The admin address is recorded for audit only; callers verify identity.
"""

from __future__ import annotations

from typing import Any

import structlog

from vow.errors import InvalidTransitionError, NotFoundError, ValidationError
from vow.moderation.schemas import DeleteRequest, RequestStatus
from vow.promises.service import remove_promise
from vow.stats.service import STATS_COLLECTIONS, refresh_global_stats
from vow.storage import Collection, RecordStore
from vow.time_utils import generate_id, now_ms

logger = structlog.get_logger()

VALID_TRANSITIONS: dict[RequestStatus, list[RequestStatus]] = {
    RequestStatus.PENDING: [RequestStatus.APPROVED, RequestStatus.REJECTED],
    RequestStatus.APPROVED: [],
    RequestStatus.REJECTED: [],
}


def validate_transition(current: RequestStatus | str, target: RequestStatus | str) -> None:
    """Raise InvalidTransitionError unless ``current -> target`` is allowed."""
    current, target = RequestStatus(current), RequestStatus(target)
    valid = VALID_TRANSITIONS[current]
    if target not in valid:
        msg = (
            f"Invalid transition: {current.value} -> {target.value}. "
            f"Valid transitions: {[s.value for s in valid]}"
        )
        raise InvalidTransitionError(msg)


def _find_pending(requests: list[dict[str, Any]], promise_id: str) -> DeleteRequest | None:
    for doc in requests:
        if doc.get("promiseId") == promise_id and doc.get("status") == RequestStatus.PENDING.value:
            return DeleteRequest.from_document(doc)
    return None


async def request_deletion(store: RecordStore, promise_id: str, requester_address: str) -> DeleteRequest:
    """Open a pending delete request, or return the one already pending for this promise."""
    if not promise_id or not requester_address or not requester_address.strip():
        msg = "Promise id and requester address are required"
        raise ValidationError(msg)

    async with store.transaction(Collection.PROMISES, Collection.DELETE_REQUESTS) as tx:
        requests = await tx.get(Collection.DELETE_REQUESTS)
        existing = _find_pending(requests, promise_id)
        if existing is not None:
            logger.info("delete_request_duplicate", promise_id=promise_id, request_id=existing.id)
            return existing

        promises = await tx.get(Collection.PROMISES)
        if not any(doc.get("id") == promise_id for doc in promises):
            msg = f"Promise {promise_id} not found"
            raise NotFoundError(msg)

        now = now_ms()
        request = DeleteRequest(
            id=generate_id("delreq", now),
            promise_id=promise_id,
            requester_address=requester_address.strip(),
            requested_at=now,
        )
        requests.append(request.to_document())
        tx.put(Collection.DELETE_REQUESTS, requests)

    logger.info(
        "delete_requested",
        promise_id=promise_id,
        request_id=request.id,
        requester=request.requester_address,
    )
    return request


async def resolve(
    store: RecordStore,
    request_id: str,
    decision: RequestStatus | str,
    admin_address: str,
    *,
    strict: bool = True,
) -> DeleteRequest:
    """Approve or reject a delete request.

    With ``strict`` an already-resolved request cannot be resolved again.
    """
    try:
        decision = RequestStatus(decision)
    except ValueError as exc:
        msg = f"Invalid decision: {decision}"
        raise ValidationError(msg) from exc
    if decision is RequestStatus.PENDING:
        msg = "Decision must be approved or rejected"
        raise ValidationError(msg)
    if not admin_address or not admin_address.strip():
        msg = "Admin address is required"
        raise ValidationError(msg)

    async with store.transaction(Collection.DELETE_REQUESTS, *STATS_COLLECTIONS) as tx:
        requests = await tx.get(Collection.DELETE_REQUESTS)
        index = next((i for i, doc in enumerate(requests) if doc.get("id") == request_id), None)
        if index is None:
            msg = f"Delete request {request_id} not found"
            raise NotFoundError(msg)

        current = DeleteRequest.from_document(requests[index])
        if strict:
            validate_transition(current.status, decision)

        resolved = current.model_copy(
            update={"status": decision, "processed_by": admin_address, "processed_at": now_ms()}
        )
        requests[index] = resolved.to_document()
        tx.put(Collection.DELETE_REQUESTS, requests)

        if decision is RequestStatus.APPROVED:
            await remove_promise(tx, resolved.promise_id)
            await refresh_global_stats(tx)

    logger.info(
        "delete_request_resolved",
        request_id=request_id,
        promise_id=resolved.promise_id,
        decision=decision.value,
        admin=admin_address,
    )
    return resolved


async def list_delete_requests(store: RecordStore, include_all: bool = False) -> list[DeleteRequest]:
    """Pending requests, or every request when ``include_all``."""
    requests = [DeleteRequest.from_document(doc) for doc in await store.get(Collection.DELETE_REQUESTS)]
    if include_all:
        return requests
    return [r for r in requests if r.status is RequestStatus.PENDING]
