import time
import uuid
import logging
from typing import Callable, Dict, Optional

from plantdoc.config import SESSION_TTL, MAX_SESSIONS
from plantdoc.services.analyzer import AnalyzerSession

logger = logging.getLogger(__name__)

SESSION_KEY = "analyzer_session_id"


class SessionStore:
    """In-memory AnalyzerSession per browser session (nothing is persisted)"""

    def __init__(
        self,
        ttl: int = SESSION_TTL,
        max_size: int = MAX_SESSIONS,
        factory: Callable[[], AnalyzerSession] = AnalyzerSession,
    ):
        self.ttl = ttl
        self.max_size = max_size
        self.factory = factory
        self._sessions: Dict[str, dict] = {}  # id -> {"session": AnalyzerSession, "ts": float}

    def __len__(self):
        return len(self._sessions)

    def get(self, session_id: str) -> Optional[AnalyzerSession]:
        entry = self._sessions.get(session_id)
        if entry and (time.time() - entry["ts"]) < self.ttl:
            entry["ts"] = time.time()
            return entry["session"]
        return None

    def get_or_create(self, session_id: Optional[str]) -> tuple:
        """Return (session_id, AnalyzerSession), creating a new one if needed"""
        if session_id:
            session = self.get(session_id)
            if session is not None:
                return session_id, session

        if len(self._sessions) >= self.max_size:
            # Evict oldest 10%, never a session with an analysis in flight.
            # When every session is busy the store goes over max_size until
            # those analyses finish and cleanup_expired catches up.
            idle_keys = [k for k, v in self._sessions.items() if not v["session"].loading]
            sorted_keys = sorted(idle_keys, key=lambda k: self._sessions[k]["ts"])
            for k in sorted_keys[:max(1, len(sorted_keys) // 10)]:
                del self._sessions[k]
            if not sorted_keys:
                logger.warning(f"Session store full ({len(self._sessions)}), all sessions busy")

        session_id = uuid.uuid4().hex
        session = self.factory()
        self._sessions[session_id] = {"session": session, "ts": time.time()}
        return session_id, session

    def cleanup_expired(self) -> int:
        now = time.time()
        expired = [
            k for k, v in self._sessions.items()
            if now - v["ts"] >= self.ttl and not v["session"].loading
        ]
        for k in expired:
            del self._sessions[k]
        if expired:
            logger.info(f"Session cleanup: removed {len(expired)} expired sessions")
        return len(expired)

    def clear(self):
        self._sessions.clear()

    def stats(self) -> dict:
        return {
            "active_sessions": len(self._sessions),
            "max_sessions": self.max_size,
            "ttl_seconds": self.ttl,
        }


session_store = SessionStore()
