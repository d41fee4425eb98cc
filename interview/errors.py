"""Client-facing error taxonomy for the interview engine."""
from __future__ import annotations

from typing import Dict


class InterviewError(Exception):
    """Base error carrying a stable machine-readable ``code``."""

    code = "INTERNAL"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def as_detail(self) -> Dict[str, str]:
        return {"code": self.code, "message": self.message}


class ValidationFailed(InterviewError):
    code = "VALIDATION_ERROR"
    status_code = 400


class InvalidSession(InterviewError):
    code = "INVALID_SESSION"
    status_code = 404


class SessionComplete(InterviewError):
    code = "SESSION_COMPLETE"
    status_code = 409


class SessionConflict(InterviewError):
    """Another turn for the same session committed first; safe to retry."""

    code = "CONFLICT"
    status_code = 409


class StoreUnavailable(InterviewError):
    code = "INTERNAL"
    status_code = 503


__all__ = [
    "InterviewError",
    "InvalidSession",
    "SessionComplete",
    "SessionConflict",
    "StoreUnavailable",
    "ValidationFailed",
]
