"""Shared FastAPI dependencies."""

from fastapi import Header, HTTPException, Request

from vow.config import Settings
from vow.storage import RecordStore


def get_store(request: Request) -> RecordStore:
    """The record store opened by the application lifespan."""
    store: RecordStore | None = getattr(request.app.state, "store", None)
    if store is None:
        msg = "Record store not initialized"
        raise RuntimeError(msg)
    return store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_admin_address(authorization: str | None = Header(default=None)) -> str:
    """Admin address from ``Authorization: Bearer <address>``.

    Identity is verified upstream; the value is only recorded for audit.
    """
    if not authorization:
        raise HTTPException(status_code=403, detail="Forbidden: Admin access required.")
    scheme, _, address = authorization.partition(" ")
    if scheme.lower() != "bearer" or not address.strip():
        raise HTTPException(status_code=403, detail="Forbidden: Admin access required.")
    return address.strip().lower()
