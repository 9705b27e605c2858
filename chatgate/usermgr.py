"""Thread-safe registry of sessions keyed by user id."""

from __future__ import annotations

import threading
from typing import Any


class UserSessions:
    """Maps user ids to their live sessions."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: dict[int, Any] = {}

    def get_session(self, uid: int) -> Any | None:
        """Return the session of ``uid``, or ``None``."""
        with self._lock:
            return self._sessions.get(uid)

    def set_session(self, uid: int, session: Any) -> None:
        """Bind ``session`` to ``uid``, replacing any earlier one."""
        with self._lock:
            self._sessions[uid] = session

    def remove_session(self, uid: int) -> None:
        """Forget the session of ``uid``; unknown ids are ignored."""
        with self._lock:
            self._sessions.pop(uid, None)

    def __contains__(self, uid: object) -> bool:
        with self._lock:
            return uid in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)