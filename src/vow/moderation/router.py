"""Admin endpoints: moderation queue and store inspection.

Every route requires ``Authorization: Bearer <admin address>``. The
address is trusted as already verified and recorded on resolutions.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from vow.backup import backup_data
from vow.config import Settings
from vow.dependencies import get_admin_address, get_app_settings, get_store
from vow.moderation.schemas import DeleteRequest, RequestStatus, ResolveRequest
from vow.moderation.service import list_delete_requests, resolve
from vow.promises.schemas import Promise, ProgressUpdateRequest
from vow.promises.service import admin_set_progress, get_promises
from vow.sessions.schemas import Session
from vow.sessions.service import get_sessions
from vow.stats.schemas import GlobalStats
from vow.stats.service import get_global_stats
from vow.storage import RecordStore
from vow.users.schemas import User
from vow.users.service import get_users

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(get_admin_address)])


class BackupResponse(BaseModel):
    path: str


@router.get("/delete-requests", response_model=list[DeleteRequest], response_model_exclude_none=True)
async def pending_delete_requests(
    include_all: bool = False,
    store: RecordStore = Depends(get_store),  # noqa: B008
) -> list[DeleteRequest]:
    """Pending delete requests (all of them with ``include_all=true``)."""
    return await list_delete_requests(store, include_all=include_all)


@router.post("/approve-delete", response_model=DeleteRequest, response_model_exclude_none=True)
async def approve_delete(
    body: ResolveRequest,
    admin: str = Depends(get_admin_address),
    store: RecordStore = Depends(get_store),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> DeleteRequest:
    """Approve a request; the promise is permanently deleted."""
    return await resolve(store, body.request_id, RequestStatus.APPROVED, admin, strict=settings.strict_transitions)


@router.post("/reject-delete", response_model=DeleteRequest, response_model_exclude_none=True)
async def reject_delete(
    body: ResolveRequest,
    admin: str = Depends(get_admin_address),
    store: RecordStore = Depends(get_store),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> DeleteRequest:
    """Reject a request; the promise is kept."""
    return await resolve(store, body.request_id, RequestStatus.REJECTED, admin, strict=settings.strict_transitions)


@router.get("/stats", response_model=GlobalStats)
async def admin_stats(store: RecordStore = Depends(get_store)) -> GlobalStats:  # noqa: B008
    return await get_global_stats(store)


@router.get("/promises", response_model=list[Promise], response_model_exclude_none=True)
async def admin_promises(store: RecordStore = Depends(get_store)) -> list[Promise]:  # noqa: B008
    return await get_promises(store)


@router.post("/update-promise-progress", response_model=Promise, response_model_exclude_none=True)
async def update_promise_progress(
    body: ProgressUpdateRequest,
    store: RecordStore = Depends(get_store),  # noqa: B008
) -> Promise:
    """Set the admin progress override (0-100) on a promise."""
    return await admin_set_progress(store, body.promise_id, body.progress)


@router.get("/users", response_model=dict[str, User])
async def admin_users(store: RecordStore = Depends(get_store)) -> dict[str, User]:  # noqa: B008
    return await get_users(store)


@router.get("/sessions", response_model=dict[str, Session])
async def admin_sessions(store: RecordStore = Depends(get_store)) -> dict[str, Session]:  # noqa: B008
    return await get_sessions(store)


@router.post("/backup", response_model=BackupResponse)
async def create_backup(
    store: RecordStore = Depends(get_store),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> BackupResponse:
    """Write a full backup of every collection."""
    path = await backup_data(store, settings.backup_dir)
    return BackupResponse(path=str(path))
