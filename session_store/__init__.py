"""Session stores keyed by opaque interview session identifiers."""
from __future__ import annotations

from pathlib import Path

from config.settings import Settings, settings as default_settings

from .base import (
    SessionConflictError,
    SessionExistsError,
    SessionNotFoundError,
    SessionStore,
    SessionStoreError,
    StoreUnavailableError,
)
from .memory import MemorySessionStore
from .sqlite import SqliteSessionStore


def build_store(cfg: Settings = default_settings) -> SessionStore:
    """Create the store selected by ``SESSION_BACKEND``."""

    if cfg.SESSION_BACKEND == "sqlite":
        return SqliteSessionStore(Path(cfg.DB_PATH), ttl_seconds=cfg.SESSION_TTL_SECONDS)
    return MemorySessionStore(ttl_seconds=cfg.SESSION_TTL_SECONDS)


__all__ = [
    "MemorySessionStore",
    "SessionConflictError",
    "SessionExistsError",
    "SessionNotFoundError",
    "SessionStore",
    "SessionStoreError",
    "SqliteSessionStore",
    "StoreUnavailableError",
    "build_store",
]
