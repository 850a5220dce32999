"""Anonymous visitor sessions."""

from __future__ import annotations

from vow.schemas import CamelModel, Document


class Session(Document):
    ip: str
    first_visit: int
    last_active: int


class SessionRecordRequest(CamelModel):
    session_id: str
