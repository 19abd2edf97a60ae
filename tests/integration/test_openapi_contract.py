from fastapi.testclient import TestClient

from orchestrator.main import app


client = TestClient(app)


def test_openapi_contains_expected_paths():
    response = client.get("/openapi.json")
    assert response.status_code == 200
    schema = response.json()
    paths = schema.get("paths", {})

    expected = [
        "/chat",
        "/health",
        "/ready",
        "/metrics",
        "/domains",
        "/domains/switch",
        "/domains/current/intents",
        "/conversations",
        "/conversations/{session_id}",
        "/conversations/{session_id}/summary",
    ]

    for path in expected:
        assert path in paths, f"Missing {path} from OpenAPI paths"

    assert "post" in paths["/chat"]
    assert {"get", "post"} <= set(paths["/domains"])
    assert {"get", "delete"} <= set(paths["/conversations/{session_id}"])
