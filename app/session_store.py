"""
In-memory store of live recognition sessions. session_id is generated on the
backend (WebSocket) and removed when the WebSocket closes; nothing persists
across sessions.
"""
from __future__ import annotations

import threading
import uuid

from app.recognition_session import RecognitionSession

# session_id -> RecognitionSession (owned by its WebSocketManager)
_session_store: dict[str, RecognitionSession] = {}
_store_lock = threading.Lock()


def generate_session_id() -> str:
    """Generate a new session_id (UUID hex, 12 chars). Backend only."""
    return uuid.uuid4().hex[:12]


def get_session(session_id: str) -> RecognitionSession | None:
    """Return live session or None if not found."""
    with _store_lock:
        return _session_store.get(session_id)


def set_session(session: RecognitionSession) -> None:
    """Register a live session under its session_id."""
    with _store_lock:
        _session_store[session.session_id] = session


def delete_session(session_id: str) -> bool:
    """Remove session from store. Return True if it existed."""
    with _store_lock:
        return _session_store.pop(session_id, None) is not None
