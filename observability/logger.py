"""Session event log: human lines on stdout, one JSON object per line on disk."""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
import threading
import time
import uuid
from typing import Any

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENABLE_FILE_LOGS = os.getenv("ENABLE_FILE_LOGS", "1") in ("1", "true", "True")
LOG_FILE = os.getenv("LOG_FILE", "logs/interview-events.jsonl")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", "5242880"))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))

HUMAN_FORMAT = "[%(asctime)s] %(levelname)s %(name)s :: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Fields promoted onto the console line; everything else stays in the JSON record
HUMAN_KEYS = ("node", "turn", "state", "source", "outcome", "code", "ms")

_logger = logging.getLogger("interview.events")
_logger.setLevel(LOG_LEVEL)
_logger.propagate = False

_configured = False
_configure_guard = threading.Lock()


class EventLineFormatter(logging.Formatter):
    """Render the payload attached by :func:`log_event` as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = getattr(record, "event", None)
        if payload is None:
            return super().format(record)
        return json.dumps(payload, ensure_ascii=False, default=str)


def attach_event_file(
    path: str,
    *,
    max_bytes: int = LOG_MAX_BYTES,
    backup_count: int = LOG_BACKUP_COUNT,
) -> logging.Handler:
    """Start appending session events to ``path`` as JSON lines."""

    log_dir = os.path.dirname(path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(LOG_LEVEL)
    handler.setFormatter(EventLineFormatter())
    _logger.addHandler(handler)
    return handler


def detach_event_handler(handler: logging.Handler) -> None:
    _logger.removeHandler(handler)
    handler.close()


def _ensure_handlers() -> None:
    global _configured
    with _configure_guard:
        if _configured:
            return
        _configured = True

        console = logging.StreamHandler(stream=sys.stdout)
        console.setLevel(LOG_LEVEL)
        console.setFormatter(logging.Formatter(HUMAN_FORMAT, datefmt=DATE_FORMAT))
        _logger.addHandler(console)

        if ENABLE_FILE_LOGS:
            attach_event_file(LOG_FILE)


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Route module loggers to stdout in the same format as session events."""

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=HUMAN_FORMAT, datefmt=DATE_FORMAT, stream=sys.stdout)
    _ensure_handlers()


def _format_human(evt: dict[str, Any]) -> str:
    base = f"session={evt.get('session_id')} kind={evt.get('kind')}"
    extras = [f"{key}={evt[key]}" for key in HUMAN_KEYS if key in evt]
    return base + (" " + " ".join(extras) if extras else "")


def log_event(kind: str, session_id: str, **fields: Any) -> None:
    """Record one session event; handlers pick the human or JSON rendering."""

    _ensure_handlers()

    payload: dict[str, Any] = {
        "ts": time.time(),
        "trace": str(uuid.uuid4()),
        "kind": kind,
        "session_id": session_id,
    }
    payload.update(fields)
    _logger.info(_format_human(payload), extra={"event": payload})


__all__ = ["EventLineFormatter", "attach_event_file", "configure_logging", "detach_event_handler", "log_event"]
