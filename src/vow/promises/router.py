"""Public promise endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from vow.config import Settings
from vow.dependencies import get_app_settings, get_store
from vow.moderation.schemas import DeleteRequest, DeleteRequestCreate
from vow.moderation.service import request_deletion
from vow.promises.schemas import Promise, PromiseCreateRequest, PromiseStatus, StatusUpdateRequest
from vow.promises.service import create_promise, get_promises, update_promise_status
from vow.sessions.schemas import SessionRecordRequest
from vow.sessions.service import record_session
from vow.stats.schemas import GlobalStats
from vow.stats.service import get_global_stats
from vow.storage import RecordStore

router = APIRouter(tags=["Promises"])


@router.post("/record-session")
async def record_session_endpoint(
    body: SessionRecordRequest,
    request: Request,
    store: RecordStore = Depends(get_store),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> dict[str, bool]:
    """Record a visit for the anonymous session id."""
    ip = request.client.host if request.client else settings.default_session_ip
    await record_session(store, body.session_id, ip)
    return {"success": True}


@router.get("/promises", response_model=list[Promise], response_model_exclude_none=True)
async def list_promises(
    address: str | None = None,
    status: PromiseStatus | None = None,
    category: str | None = None,
    store: RecordStore = Depends(get_store),  # noqa: B008
) -> list[Promise]:
    """List promises, optionally filtered."""
    return await get_promises(store, address=address, status=status, category=category)


@router.post("/promises", response_model=Promise, response_model_exclude_none=True, status_code=201)
async def create_promise_endpoint(
    body: PromiseCreateRequest,
    store: RecordStore = Depends(get_store),  # noqa: B008
) -> Promise:
    """Declare a new promise."""
    return await create_promise(
        store,
        address=body.address,
        message=body.message,
        deadline=body.deadline,
        category=body.category,
        difficulty=body.difficulty,
    )


@router.put("/promises/{promise_id}", response_model=Promise, response_model_exclude_none=True)
async def update_promise_endpoint(
    promise_id: str,
    body: StatusUpdateRequest,
    store: RecordStore = Depends(get_store),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> Promise:
    """Mark a promise completed or failed."""
    return await update_promise_status(
        store, promise_id, body.status, body.proof, strict=settings.strict_transitions
    )


@router.get("/global-stats", response_model=GlobalStats)
async def global_stats(store: RecordStore = Depends(get_store)) -> GlobalStats:  # noqa: B008
    return await get_global_stats(store)


@router.post("/delete-requests", response_model=DeleteRequest, response_model_exclude_none=True, status_code=201)
async def create_delete_request(
    body: DeleteRequestCreate,
    store: RecordStore = Depends(get_store),  # noqa: B008
) -> DeleteRequest:
    """Ask an admin to permanently delete a promise."""
    return await request_deletion(store, body.promise_id, body.requester_address)
