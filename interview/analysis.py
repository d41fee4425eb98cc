"""Per-turn answer scoring with a neutral fallback."""
from __future__ import annotations

import logging
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field

from llm_gateway import Parsed, parse_structured, try_generate

from .models import AnswerAnalysis
from .prompts import ANALYSIS_PROMPT, clamp_text, render

logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 7
DEFAULT_STRENGTH = "Demonstrated technical knowledge"
DEFAULT_IMPROVEMENT = "Could provide more implementation details"
DEFAULT_FOLLOW_UP = "Could you elaborate on the technical implementation?"


class TurnScoring(BaseModel):
    """JSON shape the generator must return for one answer."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    technicalAccuracy: float = Field(ge=1, le=10)
    problemSolving: float = Field(ge=1, le=10)
    communicationClarity: float = Field(ge=1, le=10)
    keyStrength: str = Field(min_length=1)
    technicalImprovement: str = Field(min_length=1)
    followUpQuestion: str = Field(min_length=1)


def neutral_analysis(question: str, answer: str) -> AnswerAnalysis:
    return AnswerAnalysis(
        question=question,
        answer=answer,
        technical=NEUTRAL_SCORE,
        problem_solving=NEUTRAL_SCORE,
        clarity=NEUTRAL_SCORE,
        strength=DEFAULT_STRENGTH,
        improvement=DEFAULT_IMPROVEMENT,
        follow_up=DEFAULT_FOLLOW_UP,
        source="fallback",
    )


def analyze_answer(generator: Callable[..., str], *, question: str, answer: str) -> AnswerAnalysis:
    """Score ``answer`` against ``question``; never raises on generator trouble."""

    raw = try_generate(
        generator,
        render(ANALYSIS_PROMPT, question=question, answer=clamp_text(answer, 4000)),
        purpose="analysis",
    )
    result = parse_structured(TurnScoring, raw)
    if not isinstance(result, Parsed):
        logger.warning("analysis unparsed, using neutral scores: %s", result.reason)
        return neutral_analysis(question, answer)
    scoring = result.record
    return AnswerAnalysis(
        question=question,
        answer=answer,
        technical=round(scoring.technicalAccuracy),
        problem_solving=round(scoring.problemSolving),
        clarity=round(scoring.communicationClarity),
        strength=scoring.keyStrength.strip(),
        improvement=scoring.technicalImprovement.strip(),
        follow_up=scoring.followUpQuestion.strip(),
        source="model",
    )


__all__ = ["TurnScoring", "analyze_answer", "neutral_analysis"]
