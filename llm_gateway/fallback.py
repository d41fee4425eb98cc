"""Generate-with-fallback policy and strict parsing of generator output.

Every generator call site in the interview engine goes through this module so
the retry budget (at most one retry) and the degrade-to-default rule live in a
single place.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

Messages = Sequence[Dict[str, str]]


@dataclass(frozen=True)
class Parsed(Generic[T]):
    """Generator output that passed schema validation."""

    record: T
    raw: str


@dataclass(frozen=True)
class Unparsed:
    """Generator output that could not be validated; ``raw`` kept for logging."""

    raw: str
    reason: str


ParseResult = Union[Parsed[T], Unparsed]


@dataclass(frozen=True)
class Generation:
    """Outcome of :func:`generate_with_fallback`.

    ``source`` is ``"primary"``, ``"retry"`` or ``"fallback"``.
    """

    text: str
    source: str

    @property
    def degraded(self) -> bool:
        return self.source == "fallback"


def strip_code_fences(content: str) -> str:
    """Remove a surrounding markdown code fence from model output."""

    text = content.strip()
    if text.startswith("```"):
        lines = text.splitlines()
        if lines:
            lines = lines[1:]
            while lines and lines[0].strip() == "":
                lines = lines[1:]
            while lines and lines[-1].strip() == "":
                lines = lines[:-1]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            text = "\n".join(lines).strip()
    return text


def parse_structured(schema: Type[T], content: Optional[str]) -> "ParseResult[T]":
    """Validate ``content`` as a JSON document of ``schema``."""

    if content is None:
        return Unparsed(raw="", reason="no content")
    cleaned = strip_code_fences(content)
    try:
        return Parsed(record=schema.model_validate_json(cleaned), raw=content)
    except (json.JSONDecodeError, ValidationError) as exc:
        first_line = str(exc).splitlines()[0] if str(exc) else type(exc).__name__
        return Unparsed(raw=content, reason=first_line)


def try_generate(generator: Callable[..., str], messages: Messages, *, purpose: str, **options: Any) -> Optional[str]:
    """Call ``generator`` once; return ``None`` instead of raising on failure."""

    try:
        text = generator(list(messages), **options)
    except Exception as exc:  # noqa: BLE001
        logger.warning("generator failed purpose=%s error=%s", purpose, exc)
        return None
    if not isinstance(text, str):
        logger.warning("generator returned %s purpose=%s", type(text).__name__, purpose)
        return None
    return text.strip()


def generate_with_fallback(
    generator: Callable[..., str],
    messages: Messages,
    *,
    purpose: str,
    fallback: str,
    accept: Callable[[str], bool] = bool,
    retry_messages: Optional[Messages] = None,
    retry_accept: Optional[Callable[[str], bool]] = None,
    retry_on_error: bool = False,
) -> Generation:
    """Generate text with at most one retry, degrading to ``fallback``.

    The primary reply is used when ``accept`` passes. A rejected reply (or a
    failed call when ``retry_on_error`` is set) triggers one retry with
    ``retry_messages``, judged by ``retry_accept``. Anything else yields the
    fallback text.
    """

    text = try_generate(generator, messages, purpose=purpose)
    if text is not None and accept(text):
        return Generation(text=text, source="primary")
    if retry_messages is None or (text is None and not retry_on_error):
        return Generation(text=fallback, source="fallback")
    logger.info("generator retry purpose=%s reason=%s", purpose, "error" if text is None else "rejected")
    retried = try_generate(generator, retry_messages, purpose=f"{purpose}.retry")
    check = retry_accept or accept
    if retried is not None and check(retried):
        return Generation(text=retried, source="retry")
    return Generation(text=fallback, source="fallback")


__all__ = [
    "Generation",
    "Parsed",
    "ParseResult",
    "Unparsed",
    "generate_with_fallback",
    "parse_structured",
    "strip_code_fences",
    "try_generate",
]
