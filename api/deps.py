"""Request dependencies: caller identity and the shared interview engine."""
from __future__ import annotations

import threading
from typing import Any, Optional

from fastapi import Header, HTTPException

from config.registry import GENERATOR_KEY, TRANSCRIBER_KEY, get_model
from config.settings import settings
from interview.engine import InterviewEngine
from session_store import build_store

_ENGINE: Optional[InterviewEngine] = None
_ENGINE_GUARD = threading.Lock()


def current_user(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Identity forwarded by the authentication proxy in front of the API."""

    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail={"code": "UNAUTHORIZED", "message": "Unauthorized"})
    return x_user_id.strip()


def generate(messages: Any, **options: Any) -> str:
    """Late-bound generator so registry rebinding takes effect without a restart."""

    return get_model(GENERATOR_KEY)(messages, **options)


def transcribe(audio: bytes) -> str:
    return get_model(TRANSCRIBER_KEY)(audio)


def get_engine() -> InterviewEngine:
    global _ENGINE
    with _ENGINE_GUARD:
        if _ENGINE is None:
            _ENGINE = InterviewEngine(
                build_store(settings),
                generate,
                transcribe,
                max_turns=settings.INTERVIEW_MAX_TURNS,
                similarity_threshold=settings.QUESTION_SIMILARITY_THRESHOLD,
            )
        return _ENGINE


def reset_engine() -> None:
    global _ENGINE
    with _ENGINE_GUARD:
        _ENGINE = None
