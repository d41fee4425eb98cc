"""First/next question generation and the duplicate-question guard."""
from __future__ import annotations

import logging
import re
from typing import Callable, List, Sequence

from llm_gateway import Generation, generate_with_fallback

from .models import AnswerAnalysis, InterviewSession
from .prompts import (
    FIRST_QUESTION_PROMPT,
    FIRST_QUESTION_RETRY_PROMPT,
    NEXT_QUESTION_PROMPT,
    NEXT_QUESTION_RETRY_NOTE,
    clamp_text,
    numbered,
    render,
)

logger = logging.getLogger(__name__)

CANONICAL_QUESTION = "Could you tell me about your most recent project and the technologies you used?"

FIRST_QUESTION_MAX_CHARS = 150
RETRY_QUESTION_MAX_CHARS = 100
RETRY_RESUME_CHARS = 500

RESERVE_QUESTIONS = [
    "What would you consider your strongest technical skill, and where did you apply it most recently?",
    "Can you describe a challenging technical problem you solved and the trade-offs you weighed?",
    "How do you typically debug a production issue you cannot reproduce locally?",
    "How would you design the data model for the last system you worked on if you started again?",
    "Which performance bottleneck have you tracked down, and how did you measure the improvement?",
    "How do you decide when a component should be split into its own service?",
    "What testing strategy did you use on your last project, and what did it miss?",
]

_LABEL = re.compile(r"^\s*(?:\*\*)?(?:next\s+)?question\s*\d*\s*[:.\-]\s*(?:\*\*)?", re.IGNORECASE)
_WORD_SPLIT = re.compile(r"\W+")


def clean_question(text: str) -> str:
    """Strip labels, quotes and markdown emphasis a model tends to add."""

    lines = [line.strip() for line in text.strip().splitlines() if line.strip()]
    if not lines:
        return ""
    candidate = " ".join(lines) if len(lines) <= 2 else lines[0]
    candidate = _LABEL.sub("", candidate).strip()
    return candidate.strip("*\"'` ").strip()


def is_acceptable_first_question(text: str) -> bool:
    question = clean_question(text)
    return (
        "?" in question
        and len(question) <= FIRST_QUESTION_MAX_CHARS
        and "tell me about" not in question.lower()
    )


def _has_question_mark(text: str) -> bool:
    return "?" in clean_question(text)


def _words(text: str) -> List[str]:
    return [word for word in _WORD_SPLIT.split(text.lower()) if word]


def similarity(first: str, second: str) -> float:
    """Shared words longer than three characters over the shorter question's word count."""

    words1 = _words(first)
    words2 = _words(second)
    shorter = min(len(words1), len(words2))
    if shorter == 0:
        return 0.0
    lookup = set(words2)
    common = [word for word in words1 if word in lookup and len(word) > 3]
    return len(common) / shorter


def is_fresh(candidate: str, asked: Sequence[str], threshold: float) -> bool:
    key = " ".join(_words(candidate))
    if any(key == " ".join(_words(previous)) for previous in asked):
        return False
    return all(similarity(candidate, previous) <= threshold for previous in asked)


def first_question(generator: Callable[..., str], *, industry: str, resume_text: str) -> Generation:
    """Generate the opening question, retrying once with a stricter prompt."""

    resume = resume_text.strip()
    result = generate_with_fallback(
        generator,
        render(FIRST_QUESTION_PROMPT, industry=industry, resume=clamp_text(resume, 2000) if resume else "No resume provided"),
        purpose="first_question",
        fallback=CANONICAL_QUESTION,
        accept=is_acceptable_first_question,
        retry_messages=render(
            FIRST_QUESTION_RETRY_PROMPT,
            industry=industry,
            resume=resume[:RETRY_RESUME_CHARS] if resume else "No resume provided",
        ),
        retry_accept=_has_question_mark,
    )
    if result.degraded:
        return result
    return Generation(text=clean_question(result.text), source=result.source)


def next_question(
    generator: Callable[..., str],
    session: InterviewSession,
    *,
    transcript: str,
    analysis: AnswerAnalysis,
    threshold: float,
) -> Generation:
    """Pick the question for the next turn.

    A backlog question supplied at start wins; otherwise the generator is asked
    once, and once more if the candidate repeats an asked question.
    """

    index = session.question_count
    if index < len(session.question_backlog):
        return Generation(text=session.question_backlog[index], source="backlog")

    asked = list(session.questions)

    def _accept(text: str) -> bool:
        candidate = clean_question(text)
        return bool(candidate) and is_fresh(candidate, asked, threshold)

    messages = render(
        NEXT_QUESTION_PROMPT,
        industry=session.industry,
        question=session.current_question,
        answer=clamp_text(transcript, 1500),
        strength=analysis.strength,
        improvement=analysis.improvement,
        asked=numbered(asked),
    )
    result = generate_with_fallback(
        generator,
        messages,
        purpose="next_question",
        fallback=_reserve_question(analysis, asked, threshold),
        accept=_accept,
        retry_messages=[*messages, {"role": "user", "content": NEXT_QUESTION_RETRY_NOTE}],
    )
    if result.degraded:
        logger.info("next question degraded session=%s", session.session_id)
        return result
    return Generation(text=clean_question(result.text), source=result.source)


def _reserve_question(analysis: AnswerAnalysis, asked: Sequence[str], threshold: float) -> str:
    follow_up = clean_question(analysis.follow_up)
    if follow_up and "?" in follow_up and is_fresh(follow_up, asked, threshold):
        return follow_up
    for candidate in RESERVE_QUESTIONS:
        if is_fresh(candidate, asked, threshold):
            return candidate
    return CANONICAL_QUESTION


__all__ = [
    "CANONICAL_QUESTION",
    "RESERVE_QUESTIONS",
    "clean_question",
    "first_question",
    "is_acceptable_first_question",
    "is_fresh",
    "next_question",
    "similarity",
]
