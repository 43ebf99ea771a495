"""In-memory store of recording sessions."""
from typing import Dict, List, Optional

from .models.session import Session


class SessionRegistry:
    """Sessions keyed by id, kept in insertion order.

    Not thread-safe on its own; the recording manager serializes access.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def put(self, session_id: str, session: Session) -> None:
        self._sessions[session_id] = session

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> bool:
        """Drop a session. Unknown ids are ignored."""
        return self._sessions.pop(session_id, None) is not None

    def all(self) -> List[Session]:
        """Snapshot of every session; later mutations are not visible in it."""
        return [session.model_copy() for session in self._sessions.values()]

    def count(self) -> int:
        return len(self._sessions)

    def clear(self) -> None:
        self._sessions.clear()

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
