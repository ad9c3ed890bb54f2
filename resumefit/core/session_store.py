from __future__ import annotations

import logging
import secrets
import threading
from datetime import datetime, timedelta, timezone

from resumefit.core.config import settings
from resumefit.editor.session import EditorSession
from resumefit.schemas.analysis import AnalysisResult, InputMode

logger = logging.getLogger(__name__)

_sessions: dict[str, EditorSession] = {}
_sessions_lock = threading.Lock()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _purge_expired_locked(now: datetime) -> int:
    cutoff = now - timedelta(minutes=settings.session_ttl_minutes)
    expired = [sid for sid, session in _sessions.items() if session.touched_at <= cutoff]
    for sid in expired:
        del _sessions[sid]
    return len(expired)


def _evict_oldest_locked() -> None:
    overflow = len(_sessions) - settings.session_max_count + 1
    if overflow <= 0:
        return
    oldest = sorted(_sessions.values(), key=lambda s: s.touched_at)[:overflow]
    for session in oldest:
        del _sessions[session.session_id]
    logger.info("editor_sessions_evicted count=%s", len(oldest))


def purge_expired_sessions() -> int:
    with _sessions_lock:
        return _purge_expired_locked(_utc_now())


def create_session(
    *,
    resume_text: str,
    analysis: AnalysisResult | None = None,
    input_mode: InputMode = "role",
    job_description: str | None = None,
    role_query: str | None = None,
) -> EditorSession:
    session = EditorSession(
        resume_text,
        analysis=analysis,
        input_mode=input_mode,
        job_description=job_description,
        role_query=role_query,
        session_id=secrets.token_urlsafe(18),
    )
    with _sessions_lock:
        _purge_expired_locked(_utc_now())
        _evict_oldest_locked()
        _sessions[session.session_id] = session
    logger.info("editor_session_created session=%s sections=%s", session.session_id, len(session.sections))
    return session


def get_session(session_id: str) -> EditorSession | None:
    with _sessions_lock:
        _purge_expired_locked(_utc_now())
        session = _sessions.get(session_id)
        if session is not None:
            session.touch()
        return session


def delete_session(session_id: str) -> bool:
    with _sessions_lock:
        return _sessions.pop(session_id, None) is not None


def clear_sessions() -> None:
    with _sessions_lock:
        _sessions.clear()


def session_count() -> int:
    with _sessions_lock:
        return len(_sessions)
