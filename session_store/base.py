"""Session store contract, errors and per-key leases."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Dict, Iterator, Optional, Protocol

from interview.models import InterviewSession


class SessionStoreError(RuntimeError):
    pass


class SessionExistsError(SessionStoreError):
    """A session with the same identifier is already stored."""


class SessionNotFoundError(SessionStoreError):
    """The session is absent or has expired."""


class SessionConflictError(SessionStoreError):
    """The stored version moved on since the caller read the session."""


class StoreUnavailableError(SessionStoreError):
    """The backing database could not be reached."""


class SessionStore(Protocol):
    ttl_seconds: int

    def create(self, session: InterviewSession) -> str: ...

    def get(self, session_id: str) -> Optional[InterviewSession]: ...

    def update(self, session: InterviewSession) -> InterviewSession: ...

    def delete(self, session_id: str) -> None: ...

    def lease(self, session_id: str): ...

    def purge_expired(self) -> int: ...


class KeyedLocks:
    """Per-key ``threading.Lock`` that lives only while someone holds or waits on it."""

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {}
        self._holders: Dict[str, int] = {}
        self._guard = threading.Lock()

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._holders[key] = self._holders.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._holders[key] -= 1
                if not self._holders[key]:
                    del self._holders[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


def expires_at(session: InterviewSession, ttl_seconds: int) -> datetime:
    return session.created_at + timedelta(seconds=ttl_seconds)


__all__ = [
    "KeyedLocks",
    "SessionConflictError",
    "SessionExistsError",
    "SessionNotFoundError",
    "SessionStore",
    "SessionStoreError",
    "StoreUnavailableError",
    "expires_at",
]
