"""Lightweight CLI helpers for inspecting stored interview sessions."""
from __future__ import annotations

import argparse
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from config.settings import settings
from session_store import SqliteSessionStore


def _store(db_path: Optional[str] = None) -> SqliteSessionStore:
    return SqliteSessionStore(Path(db_path or settings.DB_PATH), ttl_seconds=settings.SESSION_TTL_SECONDS)


def list_sessions(limit: int = 20, db_path: Optional[str] = None) -> None:
    for row in _store(db_path).list_sessions(limit):
        expires = datetime.fromtimestamp(row["expires_at"], tz=timezone.utc).isoformat(timespec="seconds")
        print(
            f"[{row['created_at']}] {row['session_id']} user={row['user_id']} "
            f"state={row['state']} turn={row['question_count']} v={row['version']} expires={expires}"
        )


def purge_expired(db_path: Optional[str] = None) -> None:
    removed = _store(db_path).purge_expired()
    print(f"purged {removed} expired session(s)")


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Inspect the SQLite interview session store")
    parser.add_argument("--db", help="Session database path (defaults to DB_PATH)")
    parser.add_argument("--list-sessions", type=int, metavar="N", help="Show the latest N sessions")
    parser.add_argument("--purge-expired", action="store_true", help="Delete expired sessions")
    args = parser.parse_args(argv)

    if args.purge_expired:
        purge_expired(args.db)
    if args.list_sessions:
        list_sessions(args.list_sessions, args.db)


if __name__ == "__main__":
    main()
