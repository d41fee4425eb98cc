"""Final report synthesis, with an algorithmic fallback that needs no model."""
from __future__ import annotations

import logging
from statistics import mean
from typing import Callable, List, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

from llm_gateway import Parsed, parse_structured, try_generate

from .models import AnswerAnalysis, InterviewReport, InterviewSession, ReportScores
from .prompts import REPORT_PROMPT, clamp_text, render

logger = logging.getLogger(__name__)

DETAILED_AVERAGE_CHARS = 200
SUBSTANTIAL_ANSWER_CHARS = 50
SHORT_ANSWER_CHARS = 100

TECH_TERMS = [
    "javascript",
    "typescript",
    "python",
    "react",
    "node",
    "aws",
    "azure",
    "cloud",
    "docker",
    "kubernetes",
    "database",
    "sql",
    "nosql",
    "redis",
    "frontend",
    "backend",
    "fullstack",
    "agile",
    "scrum",
    "devops",
    "ci/cd",
    "microservices",
    "architecture",
    "testing",
]


class ReportDraft(BaseModel):
    """JSON shape the generator must return for the final report."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    technicalAssessment: str = Field(min_length=1)
    architectureStrengths: List[str] = Field(min_length=1)
    technicalImprovements: List[str] = Field(min_length=1)
    learningPath: List[str] = Field(min_length=1)

    @field_validator("architectureStrengths", "technicalImprovements", "learningPath", mode="before")
    @classmethod
    def _wrap_single(cls, value):
        if isinstance(value, str):
            return [value]
        return value


def score_summary(analyses: Sequence[AnswerAnalysis]) -> ReportScores:
    if not analyses:
        return ReportScores(technical=0.0, problem_solving=0.0, clarity=0.0, overall=0.0)
    technical = mean(item.technical for item in analyses)
    problem_solving = mean(item.problem_solving for item in analyses)
    clarity = mean(item.clarity for item in analyses)
    return ReportScores(
        technical=round(technical, 1),
        problem_solving=round(problem_solving, 1),
        clarity=round(clarity, 1),
        overall=round((technical + problem_solving + clarity) / 3, 1),
    )


def detect_terms(answers: Sequence[str]) -> List[str]:
    text = " ".join(answers).lower()
    return [term for term in TECH_TERMS if term in text]


def fallback_report(session: InterviewSession) -> InterviewReport:
    """Build a report from answer lengths and detected technology terms."""

    lengths = [len(answer or "") for answer in session.answers]
    average = mean(lengths) if lengths else 0.0
    detailed = average > DETAILED_AVERAGE_CHARS
    terms = detect_terms(session.answers)

    assessment = (
        f"The candidate demonstrated {'detailed' if detailed else 'concise'} communication and provided "
        f"{'technical depth' if len(terms) > 2 else 'general knowledge'} across the interview questions."
    )
    if terms:
        assessment += f" Their knowledge of {', '.join(terms[:3])} was particularly evident."

    strengths = [
        f"Provided {'comprehensive' if detailed else 'concise'} responses to technical questions",
        (
            f"Demonstrated familiarity with {' and '.join(terms[:2])}"
            if terms
            else "Showed willingness to engage with technical questions"
        ),
        (
            "Consistently provided substantial answers to all questions"
            if lengths and all(length > SUBSTANTIAL_ANSWER_CHARS for length in lengths)
            else "Provided detailed answers to several key questions"
        ),
    ]
    improvements = [
        (
            "Could provide more detailed answers to some questions"
            if any(length < SHORT_ANSWER_CHARS for length in lengths)
            else "Could focus on being more concise in some responses"
        ),
        "Consider providing more specific examples from past work",
        "More emphasis on technical implementation details would strengthen responses",
        "Could better highlight the problem-solving approach in technical scenarios",
    ]
    learning_path = [
        "Prepare specific examples from past projects that showcase technical skills",
        f"Highlight experience with {', '.join(terms) if terms else 'relevant technologies'} more prominently",
        "Practice explaining system design decisions and their trade-offs end to end",
        "Balance technical details with business impact when describing projects",
    ]
    return InterviewReport(
        technical_assessment=assessment,
        architecture_strengths=strengths,
        technical_improvements=improvements,
        learning_path=learning_path,
        scores=score_summary(session.answer_analyses),
        source="fallback",
    )


def transcript_block(session: InterviewSession) -> str:
    blocks: List[str] = []
    for index, question in enumerate(session.questions):
        answer = session.answers[index] if index < len(session.answers) else "No answer recorded"
        analysis = session.answer_analyses[index] if index < len(session.answer_analyses) else None
        lines = [f"Q{index + 1}: {question}", f"A: {clamp_text(answer, 1200)}"]
        if analysis is not None:
            lines.append(f"Technical Score: {analysis.technical}/10")
            lines.append(f"Problem-Solving: {analysis.problem_solving}/10")
            lines.append(f"Key Strength: {analysis.strength}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def synthesize_report(generator: Callable[..., str], session: InterviewSession) -> InterviewReport:
    """Ask the generator for the four-section report; fall back to :func:`fallback_report`."""

    raw = try_generate(
        generator,
        render(REPORT_PROMPT, industry=session.industry, transcript=transcript_block(session)),
        purpose="report",
    )
    result = parse_structured(ReportDraft, raw)
    if not isinstance(result, Parsed):
        logger.warning("report unparsed, building fallback report: %s", result.reason)
        return fallback_report(session)
    draft = result.record
    return InterviewReport(
        technical_assessment=draft.technicalAssessment,
        architecture_strengths=[item for item in draft.architectureStrengths if item],
        technical_improvements=[item for item in draft.technicalImprovements if item],
        learning_path=[item for item in draft.learningPath if item],
        scores=score_summary(session.answer_analyses),
        source="model",
    )


__all__ = [
    "ReportDraft",
    "TECH_TERMS",
    "detect_terms",
    "fallback_report",
    "score_summary",
    "synthesize_report",
    "transcript_block",
]
