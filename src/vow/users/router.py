"""Public user endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from vow.config import Settings
from vow.dependencies import get_app_settings, get_store
from vow.storage import RecordStore
from vow.users.schemas import LeaderboardResponse, User, UserExport
from vow.users.service import export_user_data, get_leaderboard, get_user

router = APIRouter(tags=["Users"])


@router.get("/users/{address}", response_model=User)
async def get_user_endpoint(address: str, store: RecordStore = Depends(get_store)) -> User:  # noqa: B008
    return await get_user(store, address)


@router.get("/users/{address}/export", response_model=UserExport, response_model_exclude_none=True)
async def export_user_endpoint(address: str, store: RecordStore = Depends(get_store)) -> UserExport:  # noqa: B008
    """Download everything stored for an address."""
    return await export_user_data(store, address)


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    limit: int | None = Query(default=None, ge=0, le=100),
    store: RecordStore = Depends(get_store),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> LeaderboardResponse:
    """Top users by reputation."""
    entries = await get_leaderboard(store, limit if limit is not None else settings.leaderboard_default_limit)
    return LeaderboardResponse(entries=entries)
