"""Custom question backlog generated from a candidate's resume."""
from __future__ import annotations

import json
import logging
import re
from typing import Callable, List, Optional

from pydantic import BaseModel, Field, RootModel

from llm_gateway import Parsed, parse_structured, try_generate

from .errors import ValidationFailed
from .prompts import RESUME_ANALYSIS_PROMPT, RESUME_QUESTIONS_PROMPT, clamp_text, render

logger = logging.getLogger(__name__)

QUESTION_COUNT = 7
MIN_RESUME_CHARS = 50
MIN_QUESTION_CHARS = 10

_ARRAY = re.compile(r"\[[\s\S]*?\]")
_NUMBERED = re.compile(r"(?:^|\n)\s*\d+[.)]\s*")


class QuestionList(RootModel[List[str]]):
    pass


class ResumeQuestionSet(BaseModel):
    questions: List[str] = Field(default_factory=list)
    analysis: str = ""
    source: str = "model"


def fallback_questions(industry: str) -> List[str]:
    return [
        "Please describe your technical experience with the main technologies mentioned in your resume.",
        "Tell me about a challenging project you worked on and how you resolved technical issues.",
        "How do you approach problem-solving when faced with complex technical challenges?",
        f"What are your greatest strengths as a professional in the {industry} field?",
        "Describe a situation where you had to work with a difficult team member and how you handled it.",
        f"What are your career goals in the {industry} industry?",
        "How do you stay updated with the latest trends in your field?",
    ]


def parse_questions(text: Optional[str]) -> List[str]:
    """Read a question list from model output: JSON array, embedded array, then numbered list."""

    if not text:
        return []
    result = parse_structured(QuestionList, text)
    if isinstance(result, Parsed):
        return _clean(result.record.root)
    match = _ARRAY.search(text)
    if match:
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError:
            data = None
        if isinstance(data, list):
            return _clean(item for item in data if isinstance(item, str))
    return _clean(_NUMBERED.split(text)[1:])


def _clean(items) -> List[str]:
    return [item.strip() for item in items if isinstance(item, str) and len(item.strip()) > MIN_QUESTION_CHARS]


def generate_resume_questions(
    generator: Callable[..., str],
    *,
    resume_text: str,
    industry: str,
) -> ResumeQuestionSet:
    """Summarize the resume, then ask for a tailored question list."""

    if not resume_text or not industry or not industry.strip():
        raise ValidationFailed("Missing resume text or industry")
    if len(resume_text.strip()) < MIN_RESUME_CHARS:
        raise ValidationFailed("Resume text is too short for accurate analysis")
    industry = industry.strip()

    analysis = try_generate(
        generator,
        render(RESUME_ANALYSIS_PROMPT, resume=clamp_text(resume_text, 6000)),
        purpose="resume_analysis",
    )
    if not analysis:
        return ResumeQuestionSet(questions=fallback_questions(industry), analysis="", source="fallback")

    raw = try_generate(
        generator,
        render(RESUME_QUESTIONS_PROMPT, industry=industry, count=QUESTION_COUNT, analysis=analysis),
        purpose="resume_questions",
    )
    questions = parse_questions(raw)
    if not questions:
        logger.warning("resume questions unparsed, using fixed list")
        return ResumeQuestionSet(questions=fallback_questions(industry), analysis=analysis, source="fallback")
    return ResumeQuestionSet(questions=questions[:QUESTION_COUNT], analysis=analysis, source="model")


__all__ = ["ResumeQuestionSet", "fallback_questions", "generate_resume_questions", "parse_questions"]
