from fastapi.testclient import TestClient

from orchestrator.engine.orchestrator import SKILL_ERROR_MESSAGE
from orchestrator.main import app


client = TestClient(app, raise_server_exceptions=False)


def test_chat_unknown_intent_uses_domain_fallback():
    response = client.post("/chat", json={"message": "blorbledygook"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["intent"] == "unknown"
    assert payload["outcome"] == "unknown_intent"
    assert "banking assistant" in payload["response"]


def test_chat_empty_message_is_not_an_error():
    response = client.post("/chat", json={"message": ""})

    assert response.status_code == 200
    assert response.json()["intent"] == "unknown"


def test_chat_skill_failure_returns_apology(monkeypatch):
    from orchestrator import main as app_main

    def broken(fields):
        raise RuntimeError("core banking offline")

    monkeypatch.setitem(app_main.engine.skills._handlers, "banking.exit", broken)

    response = client.post("/chat", json={"message": "goodbye"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["outcome"] == "error"
    assert payload["response"] == SKILL_ERROR_MESSAGE


def test_unhandled_error_returns_generic_500(monkeypatch):
    from orchestrator import main as app_main

    async def explode(session_id, text):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(app_main.engine, "process_message_detailed", explode)

    response = client.post("/chat", json={"message": "hello"})

    assert response.status_code == 500
    assert response.json()["error"] == "internal_error"
