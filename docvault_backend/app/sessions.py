"""Server-side session storage for the ownership ledger.

The signed session cookie only carries an opaque, random session id.  The
ledger records themselves (public path -> absolute path) stay in this
process, keyed by that id, so a client can neither read server paths nor
resurrect a deleted record by replaying an old cookie.

Exports a dependency that yields the caller's session mapping per request.
"""
from __future__ import annotations

import secrets
import threading
import time
from typing import Callable, Dict, MutableMapping, Optional, Tuple

from fastapi import Request

from .core.config import settings

SESSION_ID_KEY = "sid"


class SessionStore:
    """In-process ``{session_id: dict}`` store with idle expiry."""

    def __init__(self, max_age: Optional[int] = None, clock: Callable[[], float] = time.monotonic) -> None:
        self.max_age = max_age
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: Dict[str, Tuple[float, Dict]] = {}

    def get(self, session_id: str) -> MutableMapping:
        """Return the mapping for ``session_id``, creating it if needed."""
        now = self._clock()
        with self._lock:
            self._prune(now)
            _, data = self._sessions.get(session_id, (now, {}))
            self._sessions[session_id] = (now, data)
            return data

    def clear(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)

    def _prune(self, now: float) -> None:
        if not self.max_age:
            return
        expired = [sid for sid, (seen, _) in self._sessions.items() if now - seen > self.max_age]
        for sid in expired:
            del self._sessions[sid]


session_store = SessionStore(max_age=settings.SESSION_MAX_AGE)


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def get_session(request: Request) -> MutableMapping:
    """FastAPI dependency that provides the caller's server-side session.

    A request without a session id gets a fresh one; the session middleware
    then sends it back in the signed cookie.
    """
    session_id = request.session.get(SESSION_ID_KEY)
    if not isinstance(session_id, str) or not session_id:
        session_id = new_session_id()
        request.session[SESSION_ID_KEY] = session_id
    return session_store.get(session_id)
