"""
In-memory chat session store for the built-in agent. Keyed by session_id; the
client only sends the new question, history lives here.
"""

import logging
import threading
from typing import Any

logger = logging.getLogger(__name__)

# Oldest turns are dropped past this many messages per session
MAX_MESSAGES_PER_SESSION = 40

# session_id -> list of {"role": "user"|"assistant", "content": str}
_sessions: dict[str, list[dict[str, Any]]] = {}
_lock = threading.Lock()


def get_history(session_id: str) -> list[dict[str, Any]]:
    """Return chat history for the session (copy so caller cannot mutate store)."""
    if not session_id or not isinstance(session_id, str):
        return []
    with _lock:
        out = list(_sessions.get(session_id) or [])
    logger.info("[session_store:get_history] session_id=%s messages=%d", session_id[:16], len(out))
    return out


def append_message(session_id: str, role: str, content: str) -> None:
    """Append one message to the session's history, trimming the oldest turns."""
    if not session_id or not isinstance(session_id, str):
        logger.info("[session_store:append_message] skip invalid session_id=%r", session_id)
        return
    with _lock:
        messages = _sessions.setdefault(session_id, [])
        messages.append({"role": role, "content": content or ""})
        if len(messages) > MAX_MESSAGES_PER_SESSION:
            del messages[: len(messages) - MAX_MESSAGES_PER_SESSION]


def clear_session(session_id: str) -> bool:
    """Forget a session. Returns True if it existed."""
    with _lock:
        return _sessions.pop(session_id, None) is not None
