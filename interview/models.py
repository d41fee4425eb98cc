"""Pydantic models for interview sessions, turns and reports."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

SessionState = Literal["ACTIVE", "COMPLETE"]
Source = Literal["model", "fallback"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnswerAnalysis(BaseModel):
    """Evaluation of one answer; parallel to ``InterviewSession.answers``."""

    question: str
    answer: str
    technical: int = Field(ge=1, le=10)
    problem_solving: int = Field(ge=1, le=10)
    clarity: int = Field(ge=1, le=10)
    strength: str
    improvement: str
    follow_up: str
    source: Source = "model"


class ReportScores(BaseModel):
    """Per-dimension averages across every analysed answer."""

    technical: float
    problem_solving: float
    clarity: float
    overall: float


class InterviewReport(BaseModel):
    technical_assessment: str
    architecture_strengths: List[str] = Field(default_factory=list)
    technical_improvements: List[str] = Field(default_factory=list)
    learning_path: List[str] = Field(default_factory=list)
    scores: Optional[ReportScores] = None
    source: Source = "model"


class InterviewSession(BaseModel):
    """Server-held state of one interview attempt."""

    session_id: str
    user_id: str
    industry: str
    resume_text: str = ""
    question_backlog: List[str] = Field(default_factory=list)

    questions: List[str] = Field(default_factory=list)
    answers: List[str] = Field(default_factory=list)
    answer_analyses: List[AnswerAnalysis] = Field(default_factory=list)
    question_count: int = Field(default=1, ge=1)

    state: SessionState = "ACTIVE"
    report: Optional[InterviewReport] = None

    version: int = 0
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def current_question(self) -> str:
        return self.questions[self.question_count - 1]

    @property
    def is_complete(self) -> bool:
        return self.state == "COMPLETE"


class SessionStart(BaseModel):
    session_id: str
    question: str


class TurnResult(BaseModel):
    """Outcome of one submitted answer."""

    is_complete: bool
    transcript: str
    analysis: AnswerAnalysis
    next_question: Optional[str] = None
    report: Optional[InterviewReport] = None


__all__ = [
    "AnswerAnalysis",
    "InterviewReport",
    "InterviewSession",
    "ReportScores",
    "SessionStart",
    "SessionState",
    "TurnResult",
    "utcnow",
]
