"""
In-memory storage for automation-code generation sessions.

Sessions are short-lived and tied to a single interaction, so there is no durable
backend: they do not survive a restart, and a caller holding a lost session id gets
a SessionNotFoundError and starts a new analysis.
"""
import copy
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol

from models.generation_session import GenerationSession


class SessionStore(Protocol):
    def get(self, session_id: str) -> Optional[GenerationSession]:
        """Return the stored session, or None if absent."""

    def put(self, session: GenerationSession) -> None:
        """Insert or overwrite a session."""

    def delete(self, session_id: str) -> None:
        """Remove a session. Removing an absent id is a no-op."""

    def evict_older_than(self, max_age_seconds: float) -> List[str]:
        """Drop sessions not updated within ``max_age_seconds``; return their ids."""


class InMemorySessionStore:
    def __init__(self) -> None:
        self._sessions: Dict[str, GenerationSession] = {}

    def get(self, session_id: str) -> Optional[GenerationSession]:
        session = self._sessions.get(session_id)
        return copy.deepcopy(session) if session else None

    def put(self, session: GenerationSession) -> None:
        self._sessions[session.session_id] = copy.deepcopy(session)

    def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def evict_older_than(self, max_age_seconds: float) -> List[str]:
        """
        Drops sessions not updated within ``max_age_seconds`` and returns their ids.
        Callers decide when to run it; nothing here evicts on its own.
        """
        now = datetime.now(timezone.utc)
        expired = [
            session_id for session_id, session in list(self._sessions.items())
            if (now - datetime.fromisoformat(session.updated_at)).total_seconds() > max_age_seconds
        ]
        for session_id in expired:
            self._sessions.pop(session_id, None)
        return expired
