"""Pydantic schemas for the interview session API."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from interview.models import AnswerAnalysis, InterviewReport, SessionState


class StartReq(BaseModel):
    industry: str = ""
    resume_text: str = ""
    custom_questions: Optional[List[str]] = None


class StartResp(BaseModel):
    session_id: str
    question: str


class ProcessAnswerReq(BaseModel):
    session_id: Optional[str] = None
    live_transcript: Optional[str] = None
    audio_base64: Optional[str] = None


class ProcessAnswerResp(BaseModel):
    is_complete: bool
    transcript: str
    analysis: AnswerAnalysis
    next_question: Optional[str] = None
    report: Optional[InterviewReport] = None


class SessionSummary(BaseModel):
    session_id: str
    industry: str
    state: SessionState
    question_count: int
    max_turns: int
    current_question: str
    questions: List[str] = Field(default_factory=list)
    answers: List[str] = Field(default_factory=list)
    analyses: List[AnswerAnalysis] = Field(default_factory=list)
    report: Optional[InterviewReport] = None
    created_at: datetime


class DeleteResp(BaseModel):
    deleted: bool = True


class ResumeAnalyzeReq(BaseModel):
    resume_text: str = ""
    industry: str = ""


class ResumeAnalyzeResp(BaseModel):
    questions: List[str]
    analysis: str
