from __future__ import annotations  # SQLite-backed session store shared across worker processes

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from interview.models import InterviewSession, utcnow

from .base import (
    KeyedLocks,
    SessionConflictError,
    SessionExistsError,
    SessionNotFoundError,
    StoreUnavailableError,
    expires_at,
)


class SqliteSessionStore:  # Single-key atomic persistence with optimistic versioning
    def __init__(
        self,
        path: Path,
        ttl_seconds: int = 1800,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:  # Initialize store with database path
        self._path = Path(path)
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._leases = KeyedLocks()
        self._ensure_schema()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:  # Open connection, commit on success, wrap driver errors
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self._path, timeout=5.0)
        except (OSError, sqlite3.Error) as exc:
            raise StoreUnavailableError(f"cannot open session database: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.IntegrityError:
            conn.rollback()
            raise
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreUnavailableError(f"session database error: {exc}") from exc
        finally:
            conn.close()

    def _ensure_schema(self) -> None:  # Create the session table if missing
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS interview_sessions (
                    session_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    state TEXT NOT NULL,
                    question_count INTEGER NOT NULL,
                    version INTEGER NOT NULL,
                    payload_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    expires_at REAL NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_interview_sessions_expiry ON interview_sessions(expires_at)"
            )

    def create(self, session: InterviewSession) -> str:  # Insert a new session row
        try:
            with self._connect() as conn:
                conn.execute(
                    "DELETE FROM interview_sessions WHERE session_id = ? AND expires_at <= ?",
                    (session.session_id, self._now()),
                )
                conn.execute(
                    """
                    INSERT INTO interview_sessions (
                        session_id,
                        user_id,
                        state,
                        question_count,
                        version,
                        payload_json,
                        created_at,
                        expires_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        session.session_id,
                        session.user_id,
                        session.state,
                        session.question_count,
                        session.version,
                        session.model_dump_json(),
                        session.created_at.isoformat(timespec="seconds"),
                        expires_at(session, self.ttl_seconds).timestamp(),
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise SessionExistsError(session.session_id) from exc
        return session.session_id

    def get(self, session_id: str) -> Optional[InterviewSession]:  # Fetch a live session, evicting it if expired
        with self._connect() as conn:
            row = conn.execute(
                "SELECT payload_json, version, expires_at FROM interview_sessions WHERE session_id = ?",
                (session_id,),
            ).fetchone()
            if row is None:
                return None
            if row["expires_at"] <= self._now():
                conn.execute("DELETE FROM interview_sessions WHERE session_id = ?", (session_id,))
                return None
        session = InterviewSession.model_validate_json(row["payload_json"])
        return session.model_copy(update={"version": int(row["version"])})

    def update(self, session: InterviewSession) -> InterviewSession:  # Compare-and-swap on the stored version
        stored = session.model_copy(update={"version": session.version + 1})
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE interview_sessions
                SET state = ?,
                    question_count = ?,
                    version = ?,
                    payload_json = ?
                WHERE session_id = ? AND version = ? AND expires_at > ?
                """,
                (
                    stored.state,
                    stored.question_count,
                    stored.version,
                    stored.model_dump_json(),
                    session.session_id,
                    session.version,
                    self._now(),
                ),
            )
            if cursor.rowcount == 1:
                return stored
            row = conn.execute(
                "SELECT version FROM interview_sessions WHERE session_id = ? AND expires_at > ?",
                (session.session_id, self._now()),
            ).fetchone()
        if row is None:
            raise SessionNotFoundError(session.session_id)
        raise SessionConflictError(
            f"stale write for {session.session_id}: stored v{row['version']}, got v{session.version}"
        )

    def delete(self, session_id: str) -> None:  # Idempotent removal
        with self._connect() as conn:
            conn.execute("DELETE FROM interview_sessions WHERE session_id = ?", (session_id,))

    @contextmanager
    def lease(self, session_id: str) -> Iterator[None]:  # In-process serialization; versions guard other processes
        with self._leases.hold(session_id):
            yield

    def purge_expired(self) -> int:  # Drop every expired row and report how many went
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM interview_sessions WHERE expires_at <= ?", (self._now(),))
            return cursor.rowcount

    def list_sessions(self, limit: int = 20) -> List[sqlite3.Row]:  # Latest session headers for the admin CLI
        with self._connect() as conn:
            return conn.execute(
                """
                SELECT session_id, user_id, state, question_count, version, created_at, expires_at
                FROM interview_sessions
                ORDER BY created_at DESC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()

    def _now(self) -> float:
        return self._clock().timestamp()


__all__ = ["SqliteSessionStore"]
