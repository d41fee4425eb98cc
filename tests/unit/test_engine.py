import threading
from datetime import timedelta

import pytest

from conftest import FIRST_QUESTION, NEXT_QUESTIONS, FakeGenerator
from interview.engine import NO_TRANSCRIPTION, InterviewEngine
from interview.errors import InvalidSession, SessionComplete, SessionConflict, StoreUnavailable, ValidationFailed
from interview.models import utcnow
from interview.questions import CANONICAL_QUESTION
from session_store import MemorySessionStore, StoreUnavailableError


ANSWER = "We used idempotency keys with exponential backoff and a dead letter queue for poison messages."


def _engine(generator, store=None, **kwargs):
    return InterviewEngine(store if store is not None else MemorySessionStore(), generator, **kwargs)


def _run_turns(engine, session_id, count):
    results = []
    for index in range(count):
        results.append(engine.submit_answer(session_id, f"{ANSWER} Turn {index + 1}."))
    return results


def test_start_uses_generated_question(fake_generator):
    engine = _engine(fake_generator)
    started = engine.start_session("u1", "Technology", "Built payment services in Python.")
    assert started.question == FIRST_QUESTION
    session = engine.get_session(started.session_id)
    assert session.state == "ACTIVE"
    assert session.question_count == 1
    assert session.questions == [FIRST_QUESTION]
    assert session.answers == []


def test_start_with_failing_generator_returns_canonical_question():
    generator = FakeGenerator(fail={"*"})
    engine = _engine(generator)
    started = engine.start_session("u1", "Technology", "")
    assert started.question == CANONICAL_QUESTION
    assert started.session_id
    assert engine.get_session(started.session_id).questions == [CANONICAL_QUESTION]
    assert generator.count("first_retry") == 0


def test_start_retries_once_with_stricter_prompt():
    generator = FakeGenerator(replies={"first": "Tell me about yourself.", "first_retry": "Why Redis streams?"})
    started = _engine(generator).start_session("u1", "Technology", "Redis, Go")
    assert started.question == "Why Redis streams?"
    assert generator.count("first") == 1
    assert generator.count("first_retry") == 1


def test_start_unusable_retry_falls_back_to_canonical():
    generator = FakeGenerator(replies={"first": "x" * 200 + "?", "first_retry": "No question here"})
    started = _engine(generator).start_session("u1", "Finance", "")
    assert started.question == CANONICAL_QUESTION


def test_start_with_custom_questions_skips_generator(fake_generator):
    engine = _engine(fake_generator)
    started = engine.start_session("u1", "Technology", "", custom_questions=["", "Custom one?", "Custom two?"])
    assert started.question == "Custom one?"
    assert fake_generator.count("first") == 0
    session = engine.get_session(started.session_id)
    assert session.question_backlog == ["Custom one?", "Custom two?"]

    result = engine.submit_answer(started.session_id, ANSWER)
    assert result.next_question == "Custom two?"
    assert fake_generator.count("next") == 0


@pytest.mark.parametrize("industry", ["", "   "])
def test_start_requires_industry(fake_generator, industry):
    store = MemorySessionStore()
    with pytest.raises(ValidationFailed) as info:
        _engine(fake_generator, store).start_session("u1", industry)
    assert info.value.code == "VALIDATION_ERROR"
    assert len(store) == 0


def test_seven_turns_complete_with_report(fake_generator):
    engine = _engine(fake_generator)
    started = engine.start_session("u1", "Technology", "")
    results = _run_turns(engine, started.session_id, 7)

    for turn, result in enumerate(results[:6], start=1):
        assert result.is_complete is False
        assert result.next_question == NEXT_QUESTIONS[turn - 1]
        assert result.report is None

    final = results[-1]
    assert final.is_complete is True
    assert final.next_question is None
    assert final.report is not None
    assert final.report.source == "model"
    assert final.report.technical_assessment
    assert final.report.architecture_strengths
    assert final.report.technical_improvements
    assert final.report.learning_path
    assert final.report.scores.technical == 8.0

    session = engine.get_session(started.session_id)
    assert session.state == "COMPLETE"
    assert len(session.questions) == 7
    assert len(session.answers) == 7
    assert len(session.answer_analyses) == 7
    assert session.question_count == 7


def test_question_count_increments_by_one_and_lists_stay_parallel(fake_generator):
    engine = _engine(fake_generator)
    started = engine.start_session("u1", "Technology", "")
    for expected in range(2, 8):
        engine.submit_answer(started.session_id, ANSWER)
        session = engine.get_session(started.session_id)
        assert session.question_count == expected
        assert len(session.answers) == len(session.answer_analyses)
        assert len(session.answers) <= len(session.questions) <= session.question_count <= 7


def test_final_turn_always_reports_even_when_generator_is_down():
    generator = FakeGenerator()
    engine = _engine(generator)
    started = engine.start_session("u1", "Technology", "")
    _run_turns(engine, started.session_id, 6)
    generator.fail = {"*"}

    final = engine.submit_answer(started.session_id, "I deployed the python backend on aws with docker.")
    assert final.is_complete is True
    assert final.report is not None
    assert final.report.source == "fallback"
    assert final.analysis.source == "fallback"
    assert "python" in final.report.technical_assessment


def test_unparseable_analysis_uses_neutral_scores():
    generator = FakeGenerator(replies={"analysis": "Great answer, 8/10!"})
    engine = _engine(generator)
    started = engine.start_session("u1", "Technology", "")
    result = engine.submit_answer(started.session_id, ANSWER)
    assert (result.analysis.technical, result.analysis.problem_solving, result.analysis.clarity) == (7, 7, 7)
    assert result.analysis.source == "fallback"
    assert result.is_complete is False


def test_unknown_session_is_invalid_and_creates_nothing(fake_generator):
    store = MemorySessionStore()
    engine = _engine(fake_generator, store)
    with pytest.raises(InvalidSession) as info:
        engine.submit_answer("missing", ANSWER)
    assert info.value.code == "INVALID_SESSION"
    assert len(store) == 0
    assert store.get("missing") is None


def test_rejected_submits_leave_no_lease_behind(fake_generator):
    store = MemorySessionStore()
    engine = _engine(fake_generator, store)
    for index in range(100):
        with pytest.raises(InvalidSession):
            engine.submit_answer(f"bogus-{index}", ANSWER)
    assert len(store._leases) == 0


def test_missing_session_id_is_validation_error(fake_generator):
    with pytest.raises(ValidationFailed):
        _engine(fake_generator).submit_answer("", ANSWER)


def test_other_users_session_is_invalid(fake_generator):
    engine = _engine(fake_generator)
    started = engine.start_session("u1", "Technology", "")
    with pytest.raises(InvalidSession):
        engine.submit_answer(started.session_id, ANSWER, user_id="u2")
    assert engine.get_session(started.session_id).answers == []


def test_complete_session_rejects_answers_without_mutation(fake_generator):
    engine = _engine(fake_generator)
    started = engine.start_session("u1", "Technology", "")
    _run_turns(engine, started.session_id, 7)
    before = engine.get_session(started.session_id)

    with pytest.raises(SessionComplete) as info:
        engine.submit_answer(started.session_id, "one more answer")
    assert info.value.code == "SESSION_COMPLETE"

    after = engine.get_session(started.session_id)
    assert after.report == before.report
    assert after.answers == before.answers
    assert after.version == before.version


def test_failed_transcription_uses_placeholder(fake_generator):
    def broken_transcriber(audio):
        raise RuntimeError("speech service offline")

    engine = InterviewEngine(MemorySessionStore(), fake_generator, broken_transcriber)
    started = engine.start_session("u1", "Technology", "")
    result = engine.submit_answer(started.session_id, None, audio=b"\x00\x01")
    assert result.transcript == NO_TRANSCRIPTION
    assert result.is_complete is False
    assert result.next_question
    assert engine.get_session(started.session_id).answers == [NO_TRANSCRIPTION]


def test_client_transcript_wins_over_audio(fake_generator):
    calls = []

    def transcriber(audio):
        calls.append(audio)
        return "from audio"

    engine = InterviewEngine(MemorySessionStore(), fake_generator, transcriber)
    started = engine.start_session("u1", "Technology", "")
    assert engine.submit_answer(started.session_id, "live words", audio=b"abc").transcript == "live words"
    assert engine.submit_answer(started.session_id, "  ", audio=b"abc").transcript == "from audio"
    assert calls == [b"abc"]


def test_duplicate_next_question_is_regenerated_once():
    generator = FakeGenerator(
        replies={"next": FIRST_QUESTION, "next_retry": "How did you shard the ledger database by merchant?"}
    )
    engine = _engine(generator)
    started = engine.start_session("u1", "Technology", "")
    result = engine.submit_answer(started.session_id, ANSWER)
    assert result.next_question == "How did you shard the ledger database by merchant?"
    assert generator.count("next") == 1
    assert generator.count("next_retry") == 1


def test_repeated_duplicates_fall_back_to_follow_up():
    generator = FakeGenerator(replies={"next": FIRST_QUESTION, "next_retry": FIRST_QUESTION})
    engine = _engine(generator)
    started = engine.start_session("u1", "Technology", "")
    result = engine.submit_answer(started.session_id, ANSWER)
    assert result.next_question == "How did you validate the backoff parameters in production?"


def test_store_outage_surfaces_as_internal(fake_generator):
    class BrokenStore(MemorySessionStore):
        def get(self, session_id):
            raise StoreUnavailableError("disk gone")

    engine = _engine(fake_generator, BrokenStore())
    with pytest.raises(StoreUnavailable) as info:
        engine.submit_answer("abc", ANSWER)
    assert info.value.code == "INTERNAL"


def test_expired_session_is_invalid(fake_generator):
    now = [utcnow()]
    store = MemorySessionStore(ttl_seconds=60, clock=lambda: now[0])
    engine = _engine(fake_generator, store)
    started = engine.start_session("u1", "Technology", "")
    now[0] = now[0] + timedelta(seconds=61)
    with pytest.raises(InvalidSession):
        engine.submit_answer(started.session_id, ANSWER)


def test_stale_write_is_a_conflict_and_keeps_stored_state(fake_generator):
    store = MemorySessionStore()
    engine = _engine(fake_generator, store)
    started = engine.start_session("u1", "Technology", "")
    original_update = store.update

    def racing_update(session):
        stale = store.get(session.session_id)
        original_update(stale)
        return original_update(session)

    store.update = racing_update
    with pytest.raises(SessionConflict) as info:
        engine.submit_answer(started.session_id, ANSWER)
    assert info.value.code == "CONFLICT"
    assert store.get(started.session_id).answers == []


def test_concurrent_submits_are_serialized(fake_generator):
    engine = _engine(fake_generator)
    started = engine.start_session("u1", "Technology", "")
    barrier = threading.Barrier(4)
    errors = []

    def submit(index):
        barrier.wait()
        try:
            engine.submit_answer(started.session_id, f"{ANSWER} worker {index}")
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=submit, args=(index,)) for index in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    session = engine.get_session(started.session_id)
    assert len(session.answers) == 4
    assert session.question_count == 5
    assert len(session.questions) == 5
    assert len(set(session.answers)) == 4


def test_max_turns_is_configurable(fake_generator):
    engine = _engine(fake_generator, max_turns=2)
    started = engine.start_session("u1", "Technology", "")
    assert engine.submit_answer(started.session_id, ANSWER).is_complete is False
    assert engine.submit_answer(started.session_id, ANSWER).is_complete is True


def test_delete_session_is_idempotent(fake_generator):
    engine = _engine(fake_generator)
    started = engine.start_session("u1", "Technology", "")
    engine.delete_session(started.session_id)
    engine.delete_session(started.session_id)
    with pytest.raises(InvalidSession):
        engine.get_session(started.session_id)
