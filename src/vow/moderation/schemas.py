"""Delete request entity and request models."""

from __future__ import annotations

from enum import Enum

from vow.schemas import CamelModel, Document


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DeleteRequest(Document):
    """Moderation ticket gating permanent removal of a promise."""

    id: str
    promise_id: str
    requester_address: str
    status: RequestStatus = RequestStatus.PENDING
    requested_at: int
    processed_by: str | None = None
    processed_at: int | None = None


class DeleteRequestCreate(CamelModel):
    promise_id: str
    requester_address: str


class ResolveRequest(CamelModel):
    request_id: str
