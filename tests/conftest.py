import json
import os
import sys
import tempfile
from pathlib import Path

os.environ.setdefault("ENABLE_FILE_LOGS", "0")

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from api.deps import reset_engine
from config.registry import clear_models
from config.settings import settings


FIRST_QUESTION = "How did you design the retry logic in your payment service?"

NEXT_QUESTIONS = [
    "How did you partition the PostgreSQL tables when write volume grew?",
    "Which caching strategy kept the checkout API latency under budget?",
    "What made you choose Kafka over RabbitMQ for event delivery?",
    "How were schema migrations rolled out without downtime?",
    "Which metrics alerted you first once queue consumers stalled?",
    "How did you secure service-to-service authentication between microservices?",
    "What trade-offs did you accept when denormalizing the reporting store?",
    "How would you redesign deployment pipelines to shorten rollback time?",
]

ANALYSIS = {
    "technicalAccuracy": 8,
    "problemSolving": 6,
    "communicationClarity": 9,
    "keyStrength": "Clear explanation of idempotent retries",
    "technicalImprovement": "Quantify the throughput impact",
    "followUpQuestion": "How did you validate the backoff parameters in production?",
}

REPORT = {
    "technicalAssessment": "Strong backend fundamentals with solid data modelling.",
    "architectureStrengths": ["Idempotent payment flows", "Pragmatic partitioning"],
    "technicalImprovements": ["Capacity planning"],
    "learningPath": ["Designing Data-Intensive Applications"],
}


def classify(messages) -> str:
    text = "\n".join(message["content"] for message in messages)
    if "overlapped with a question already asked" in text:
        return "next_retry"
    if "Must be under 100 characters" in text:
        return "first_retry"
    if "Generate one focused" in text:
        return "first"
    if "technicalAccuracy" in text:
        return "analysis"
    if "Generate the next technical interview question" in text:
        return "next"
    if "technicalAssessment" in text:
        return "report"
    if "Analyze this resume" in text:
        return "resume_analysis"
    if "JSON array of strings" in text:
        return "resume_questions"
    return "unknown"


class FakeGenerator:
    """Prompt-aware stand-in for the chat model.

    ``replies`` overrides the reply per prompt kind (a list is consumed in
    order); kinds listed in ``fail`` raise instead of answering.
    """

    def __init__(self, replies=None, fail=()):
        self.replies = dict(replies or {})
        self.fail = set(fail)
        self.calls = []
        self._next_index = 0

    def __call__(self, messages, **options):
        kind = classify(messages)
        self.calls.append(kind)
        if kind in self.fail or "*" in self.fail:
            raise RuntimeError(f"generator down for {kind}")
        if kind in self.replies:
            reply = self.replies[kind]
            if isinstance(reply, list):
                return reply.pop(0)
            return reply
        if kind in ("first", "first_retry"):
            return FIRST_QUESTION
        if kind == "analysis":
            return json.dumps(ANALYSIS)
        if kind in ("next", "next_retry"):
            question = NEXT_QUESTIONS[self._next_index % len(NEXT_QUESTIONS)]
            self._next_index += 1
            return question
        if kind == "report":
            return json.dumps(REPORT)
        if kind == "resume_analysis":
            return "Title: Backend Engineer\nSkills: Python, PostgreSQL, Kafka"
        if kind == "resume_questions":
            return json.dumps([f"Question number {index} about the payment platform?" for index in range(1, 8)])
        return ""

    def count(self, kind):
        return self.calls.count(kind)


@pytest.fixture(autouse=True)
def isolated_runtime(monkeypatch):
    td = tempfile.TemporaryDirectory()
    monkeypatch.setattr(settings, "DB_PATH", os.path.join(td.name, "sessions.db"), raising=False)
    monkeypatch.setattr(settings, "SESSION_BACKEND", "memory", raising=False)
    clear_models()
    reset_engine()
    try:
        yield
    finally:
        clear_models()
        reset_engine()
        td.cleanup()


@pytest.fixture
def fake_generator():
    return FakeGenerator()
