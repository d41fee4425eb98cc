"""Interview session engine: start, answer, score, continue or report."""
from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Sequence, TypedDict

from langgraph.graph import END, StateGraph

from observability import log_event, span
from session_store import (
    SessionConflictError,
    SessionExistsError,
    SessionNotFoundError,
    SessionStore,
    StoreUnavailableError,
)

from .analysis import analyze_answer
from .errors import InvalidSession, SessionComplete, SessionConflict, StoreUnavailable, ValidationFailed
from .models import AnswerAnalysis, InterviewReport, InterviewSession, SessionStart, TurnResult
from .questions import first_question, next_question
from .report import synthesize_report

logger = logging.getLogger(__name__)

NO_TRANSCRIPTION = "No transcription available"
DEFAULT_MAX_TURNS = 7
DEFAULT_SIMILARITY_THRESHOLD = 0.6
CREATE_ATTEMPTS = 3


class TurnState(TypedDict, total=False):
    """Values flowing through the per-turn graph; the session itself is read-only here."""

    session: InterviewSession
    answer_text: Optional[str]
    audio: Optional[bytes]
    transcript: str
    analysis: AnswerAnalysis
    report: InterviewReport
    next_question: str
    question_source: str


class InterviewEngine:
    """Owns the ACTIVE -> COMPLETE state machine for interview sessions.

    Generator and transcriber failures are absorbed into documented defaults;
    only client errors and store failures leave the public methods.
    """

    def __init__(
        self,
        store: SessionStore,
        generator: Callable[..., str],
        transcriber: Optional[Callable[[bytes], str]] = None,
        *,
        max_turns: int = DEFAULT_MAX_TURNS,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ) -> None:
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self._store = store
        self._generator = generator
        self._transcriber = transcriber
        self.max_turns = max_turns
        self.similarity_threshold = similarity_threshold
        self._id_factory = id_factory
        self._turn_graph = self._build_turn_graph()

    # ------------------------------------------------------------------ start

    def start_session(
        self,
        user_id: str,
        industry: str,
        resume_text: str = "",
        custom_questions: Optional[Sequence[str]] = None,
    ) -> SessionStart:
        if not user_id or not user_id.strip():
            raise ValidationFailed("user_id is required")
        if not industry or not industry.strip():
            raise ValidationFailed("Please select an industry")
        backlog = [item.strip() for item in (custom_questions or []) if item and item.strip()]
        resume = resume_text or ""

        if backlog:
            question, source = backlog[0], "backlog"
        else:
            generated = first_question(self._generator, industry=industry.strip(), resume_text=resume)
            question, source = generated.text, generated.source

        session_id = self._create(
            user_id=user_id.strip(),
            industry=industry.strip(),
            resume_text=resume,
            question_backlog=backlog,
            question=question,
        )
        log_event("session.start", session_id, turn=1, source=source, backlog=len(backlog))
        return SessionStart(session_id=session_id, question=question)

    def _create(self, **fields) -> str:
        question = fields.pop("question")
        for _ in range(CREATE_ATTEMPTS):
            session = InterviewSession(
                session_id=self._id_factory(),
                questions=[question],
                question_count=1,
                **fields,
            )
            try:
                with self._store_errors():
                    return self._store.create(session)
            except SessionExistsError:
                logger.warning("session id collision, regenerating id=%s", session.session_id)
        raise StoreUnavailable("could not allocate a unique session id")

    # ----------------------------------------------------------------- answer

    def submit_answer(
        self,
        session_id: Optional[str],
        answer_text: Optional[str] = None,
        audio: Optional[bytes] = None,
        *,
        user_id: Optional[str] = None,
    ) -> TurnResult:
        if not session_id or not session_id.strip():
            raise ValidationFailed("No session ID provided")
        session_id = session_id.strip()

        with span(session_id, "submit_answer"), self._store.lease(session_id):
            session = self._load(session_id, user_id)
            if session.is_complete:
                log_event("turn.rejected", session_id, code=SessionComplete.code)
                raise SessionComplete("Interview is already complete")

            turn = session.question_count
            outcome: TurnState = self._turn_graph.invoke(
                {"session": session, "answer_text": answer_text, "audio": audio}
            )
            updated = _apply_turn(session, outcome)
            self._commit(updated)

        result = TurnResult(
            is_complete=updated.is_complete,
            transcript=outcome["transcript"],
            analysis=outcome["analysis"],
            next_question=outcome.get("next_question"),
            report=updated.report,
        )
        log_event(
            "turn.end",
            session_id,
            turn=turn,
            state=updated.state,
            source=result.analysis.source,
            outcome="report" if result.is_complete else outcome.get("question_source"),
        )
        return result

    # ---------------------------------------------------------- read / delete

    def get_session(self, session_id: str, *, user_id: Optional[str] = None) -> InterviewSession:
        if not session_id or not session_id.strip():
            raise ValidationFailed("No session ID provided")
        return self._load(session_id.strip(), user_id)

    def delete_session(self, session_id: str, *, user_id: Optional[str] = None) -> None:
        if not session_id or not session_id.strip():
            raise ValidationFailed("No session ID provided")
        session_id = session_id.strip()
        if user_id is not None:
            self._load(session_id, user_id)
        with self._store_errors():
            self._store.delete(session_id)
        log_event("session.deleted", session_id)

    # ------------------------------------------------------------- turn graph

    def _build_turn_graph(self):
        graph = StateGraph(TurnState)
        graph.add_node("transcribe_answer", self._transcribe)
        graph.add_node("score_answer", self._analyze)
        graph.add_node("write_report", self._report)
        graph.add_node("ask_next", self._next_question)
        graph.set_entry_point("transcribe_answer")
        graph.add_edge("transcribe_answer", "score_answer")
        graph.add_conditional_edges(
            "score_answer",
            self._route_after_analysis,
            {"complete": "write_report", "continue": "ask_next"},
        )
        graph.add_edge("write_report", END)
        graph.add_edge("ask_next", END)
        return graph.compile()

    def _transcribe(self, state: TurnState) -> TurnState:
        text = (state.get("answer_text") or "").strip()
        if text:
            return {"transcript": text}
        audio = state.get("audio")
        if audio and self._transcriber is not None:
            try:
                text = (self._transcriber(audio) or "").strip()
            except Exception as exc:  # noqa: BLE001
                logger.warning("transcription failed session=%s error=%s", state["session"].session_id, exc)
                text = ""
        return {"transcript": text or NO_TRANSCRIPTION}

    def _analyze(self, state: TurnState) -> TurnState:
        session = state["session"]
        with span(session.session_id, "analyze", turn=session.question_count):
            analysis = analyze_answer(
                self._generator,
                question=session.current_question,
                answer=state["transcript"],
            )
        return {"analysis": analysis}

    def _route_after_analysis(self, state: TurnState) -> str:
        if state["session"].question_count >= self.max_turns:
            return "complete"
        return "continue"

    def _report(self, state: TurnState) -> TurnState:
        session = state["session"]
        answered = session.model_copy(
            update={
                "answers": [*session.answers, state["transcript"]],
                "answer_analyses": [*session.answer_analyses, state["analysis"]],
            }
        )
        with span(session.session_id, "report"):
            report = synthesize_report(self._generator, answered)
        return {"report": report}

    def _next_question(self, state: TurnState) -> TurnState:
        session = state["session"]
        with span(session.session_id, "next_question", turn=session.question_count + 1):
            generated = next_question(
                self._generator,
                session,
                transcript=state["transcript"],
                analysis=state["analysis"],
                threshold=self.similarity_threshold,
            )
        return {"next_question": generated.text, "question_source": generated.source}

    # ------------------------------------------------------------------ store

    def _load(self, session_id: str, user_id: Optional[str]) -> InterviewSession:
        with self._store_errors():
            session = self._store.get(session_id)
        if session is None or (user_id is not None and session.user_id != user_id):
            log_event("turn.rejected", session_id, code=InvalidSession.code)
            raise InvalidSession("Invalid session")
        return session

    def _commit(self, session: InterviewSession) -> InterviewSession:
        try:
            with self._store_errors():
                return self._store.update(session)
        except SessionNotFoundError as exc:
            raise InvalidSession("Session expired while processing the answer") from exc
        except SessionConflictError as exc:
            log_event("turn.rejected", session.session_id, code=SessionConflict.code)
            raise SessionConflict("Another answer for this session was processed first; retry") from exc

    @contextmanager
    def _store_errors(self) -> Iterator[None]:
        try:
            yield
        except StoreUnavailableError as exc:
            logger.error("session store unavailable: %s", exc)
            raise StoreUnavailable("Session store unavailable") from exc


def _apply_turn(session: InterviewSession, outcome: TurnState) -> InterviewSession:
    """Fold one turn's results into a fresh copy; the input session is left as read."""

    answers: List[str] = [*session.answers, outcome["transcript"]]
    analyses: List[AnswerAnalysis] = [*session.answer_analyses, outcome["analysis"]]
    if "report" in outcome:
        return session.model_copy(
            update={
                "answers": answers,
                "answer_analyses": analyses,
                "state": "COMPLETE",
                "report": outcome["report"],
            }
        )
    return session.model_copy(
        update={
            "answers": answers,
            "answer_analyses": analyses,
            "questions": [*session.questions, outcome["next_question"]],
            "question_count": session.question_count + 1,
        }
    )


__all__ = ["InterviewEngine", "NO_TRANSCRIPTION", "TurnState"]
