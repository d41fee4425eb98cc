"""FastAPI routes for interview session control."""
from __future__ import annotations

import base64
import binascii
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.deps import current_user, generate, get_engine
from api.schemas import (
    DeleteResp,
    ProcessAnswerReq,
    ProcessAnswerResp,
    ResumeAnalyzeReq,
    ResumeAnalyzeResp,
    SessionSummary,
    StartReq,
    StartResp,
)
from config.settings import settings
from interview.engine import InterviewEngine
from interview.errors import InterviewError, ValidationFailed
from interview.resume_questions import generate_resume_questions


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/interview")
resume_router = APIRouter(prefix="/api/resume-interview")


@contextmanager
def _engine_errors() -> Iterator[None]:
    try:
        yield
    except InterviewError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.as_detail()) from exc


async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies with the same detail shape as engine errors."""

    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    error = ValidationFailed(f"{field}: {message}" if field else message)
    return JSONResponse(status_code=error.status_code, content={"detail": error.as_detail()})


def _decode_audio(encoded: Optional[str]) -> Optional[bytes]:
    if not encoded:
        return None
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("discarding undecodable audio payload")
        return None


@router.post("/start", response_model=StartResp)
def start(
    req: StartReq,
    response: Response,
    user_id: str = Depends(current_user),
    engine: InterviewEngine = Depends(get_engine),
) -> StartResp:
    with _engine_errors():
        started = engine.start_session(
            user_id,
            req.industry,
            resume_text=req.resume_text,
            custom_questions=req.custom_questions,
        )
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        started.session_id,
        max_age=settings.SESSION_TTL_SECONDS,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="strict",
        path="/",
    )
    return StartResp(session_id=started.session_id, question=started.question)


@router.post("/process-answer", response_model=ProcessAnswerResp)
def process_answer(
    req: ProcessAnswerReq,
    request: Request,
    user_id: str = Depends(current_user),
    engine: InterviewEngine = Depends(get_engine),
) -> ProcessAnswerResp:
    session_id = req.session_id or request.cookies.get(settings.SESSION_COOKIE_NAME)
    with _engine_errors():
        result = engine.submit_answer(
            session_id,
            answer_text=req.live_transcript,
            audio=_decode_audio(req.audio_base64),
            user_id=user_id,
        )
    return ProcessAnswerResp(**result.model_dump())


@router.get("/sessions/{session_id}", response_model=SessionSummary)
def get_session(
    session_id: str,
    user_id: str = Depends(current_user),
    engine: InterviewEngine = Depends(get_engine),
) -> SessionSummary:
    with _engine_errors():
        session = engine.get_session(session_id, user_id=user_id)
    return SessionSummary(
        session_id=session.session_id,
        industry=session.industry,
        state=session.state,
        question_count=session.question_count,
        max_turns=engine.max_turns,
        current_question=session.current_question,
        questions=session.questions,
        answers=session.answers,
        analyses=session.answer_analyses,
        report=session.report,
        created_at=session.created_at,
    )


@router.delete("/sessions/{session_id}", response_model=DeleteResp)
def delete_session(
    session_id: str,
    response: Response,
    user_id: str = Depends(current_user),
    engine: InterviewEngine = Depends(get_engine),
) -> DeleteResp:
    with _engine_errors():
        engine.delete_session(session_id, user_id=user_id)
    response.delete_cookie(
        settings.SESSION_COOKIE_NAME,
        path="/",
        secure=settings.SESSION_COOKIE_SECURE,
        httponly=True,
        samesite="strict",
    )
    return DeleteResp()


@resume_router.post("/analyze", response_model=ResumeAnalyzeResp)
def analyze_resume(req: ResumeAnalyzeReq, user_id: str = Depends(current_user)) -> ResumeAnalyzeResp:
    with _engine_errors():
        result = generate_resume_questions(generate, resume_text=req.resume_text, industry=req.industry)
    return ResumeAnalyzeResp(questions=result.questions, analysis=result.analysis)
