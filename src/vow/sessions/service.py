"""Session tracker: first-seen / last-active per anonymous session id."""

from __future__ import annotations

import structlog

from vow.errors import ValidationError
from vow.sessions.schemas import Session
from vow.stats.service import STATS_COLLECTIONS, refresh_global_stats
from vow.storage import Collection, RecordStore
from vow.time_utils import now_ms

logger = structlog.get_logger()


async def record_session(store: RecordStore, session_id: str, ip: str = "simulated_ip") -> Session:
    """Record a visit. A new session refreshes GlobalStats; a known one only bumps lastActive."""
    if not session_id or not session_id.strip():
        msg = "Session id is required"
        raise ValidationError(msg)

    now = now_ms()
    async with store.transaction(*STATS_COLLECTIONS) as tx:
        sessions = await tx.get(Collection.SESSIONS)
        if session_id in sessions:
            session = Session.from_document(sessions[session_id]).model_copy(update={"last_active": now})
            sessions[session_id] = session.to_document()
            tx.put(Collection.SESSIONS, sessions)
            return session

        session = Session(ip=ip, first_visit=now, last_active=now)
        sessions[session_id] = session.to_document()
        tx.put(Collection.SESSIONS, sessions)
        await refresh_global_stats(tx)

    logger.info("session_recorded", session_id=session_id, ip=ip)
    return session


async def get_sessions(store: RecordStore) -> dict[str, Session]:
    sessions = await store.get(Collection.SESSIONS)
    return {key: Session.from_document(doc) for key, doc in sessions.items()}
