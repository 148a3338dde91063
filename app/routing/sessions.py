from __future__ import annotations

import logging
import threading
import uuid

logger = logging.getLogger("spark_bot")


class SessionStore:
    """Room id to api.ai session id, kept for the lifetime of the process."""

    def __init__(self) -> None:
        self._sessions: dict[str, str] = {}
        self._lock = threading.Lock()

    def get_or_create(self, conversation_id: str) -> str:
        with self._lock:
            session_id = self._sessions.get(conversation_id)
            if session_id is None:
                session_id = str(uuid.uuid1())
                self._sessions[conversation_id] = session_id
                logger.info("Session created room_id=%s session_id=%s", conversation_id, session_id)
            return session_id

    def get(self, conversation_id: str) -> str | None:
        with self._lock:
            return self._sessions.get(conversation_id)

    def __contains__(self, conversation_id: object) -> bool:
        with self._lock:
            return conversation_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
