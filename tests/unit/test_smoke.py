"""Basic smoke tests for the service scaffolding."""

from observability.logger import _format_human


def test_imports():
    import api_server  # noqa: F401
    from config.settings import settings

    assert settings.DB_PATH.endswith(".db")


def test_health_endpoint():
    from fastapi.testclient import TestClient

    from api_server import create_app

    assert TestClient(create_app()).get("/health").json() == {"status": "ok"}


def test_human_event_line_lists_known_fields():
    line = _format_human({"kind": "turn.end", "session_id": "s1", "turn": 3, "source": "model", "extra": 1})
    assert line == "session=s1 kind=turn.end turn=3 source=model"
