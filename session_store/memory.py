"""In-process session store for single-worker deployments."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Dict, Iterator, Optional

from interview.models import InterviewSession, utcnow

from .base import KeyedLocks, SessionConflictError, SessionExistsError, SessionNotFoundError, expires_at


class MemorySessionStore:
    """Dictionary-backed store keeping serialized sessions with a TTL.

    Entries are held as JSON so callers never share mutable state with the
    store; expired entries are evicted when read.
    """

    def __init__(self, ttl_seconds: int = 1800, *, clock: Callable[[], datetime] = utcnow) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, str] = {}
        self._guard = threading.Lock()
        self._leases = KeyedLocks()

    def create(self, session: InterviewSession) -> str:
        with self._guard:
            if self._live(session.session_id) is not None:
                raise SessionExistsError(session.session_id)
            self._entries[session.session_id] = session.model_dump_json()
        return session.session_id

    def get(self, session_id: str) -> Optional[InterviewSession]:
        with self._guard:
            return self._live(session_id)

    def update(self, session: InterviewSession) -> InterviewSession:
        with self._guard:
            current = self._live(session.session_id)
            if current is None:
                raise SessionNotFoundError(session.session_id)
            if current.version != session.version:
                raise SessionConflictError(
                    f"stale write for {session.session_id}: stored v{current.version}, got v{session.version}"
                )
            stored = session.model_copy(update={"version": session.version + 1})
            self._entries[session.session_id] = stored.model_dump_json()
        return stored

    def delete(self, session_id: str) -> None:
        with self._guard:
            self._entries.pop(session_id, None)

    @contextmanager
    def lease(self, session_id: str) -> Iterator[None]:
        with self._leases.hold(session_id):
            yield

    def purge_expired(self) -> int:
        with self._guard:
            before = len(self._entries)
            for session_id in list(self._entries):
                self._live(session_id)
            return before - len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def _live(self, session_id: str) -> Optional[InterviewSession]:
        raw = self._entries.get(session_id)
        if raw is None:
            return None
        session = InterviewSession.model_validate_json(raw)
        if self._clock() >= expires_at(session, self.ttl_seconds):
            del self._entries[session_id]
            return None
        return session


__all__ = ["MemorySessionStore"]
