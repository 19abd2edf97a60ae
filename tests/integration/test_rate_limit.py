from fastapi import FastAPI
from fastapi.testclient import TestClient

from orchestrator.core.config import Settings
from orchestrator.core.rate_limit import create_rate_limit_middleware
from orchestrator.main import app


def _limited_app(**overrides) -> FastAPI:
    settings = Settings(_env_file=None, rate_limit_enabled=True, **overrides)
    limited = FastAPI()
    limited.middleware("http")(create_rate_limit_middleware(settings))

    @limited.post("/chat")
    async def chat(message: dict) -> dict:
        return {"echo": message.get("message")}

    @limited.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return limited


def test_limiter_is_disabled_by_default():
    client = TestClient(app)
    for _ in range(10):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.headers.get("X-RateLimit-Limit") is None


def test_health_is_exempt_from_rate_limit():
    client = TestClient(_limited_app(rate_limit_burst_per_second=1))
    for _ in range(30):
        resp = client.get("/health")
        assert resp.status_code == 200


def test_rate_limit_headers_present_on_success():
    client = TestClient(_limited_app())
    resp = client.post("/chat", json={"message": "hi"}, headers={"X-User-ID": "rl-user"})

    assert resp.status_code == 200
    assert resp.headers.get("X-RateLimit-Limit") == "5"
    assert resp.headers.get("X-RateLimit-Remaining") is not None
    assert resp.headers.get("X-RateLimit-Reset") is not None


def test_rate_limit_can_trigger_429_on_burst():
    client = TestClient(_limited_app(rate_limit_burst_per_second=3), raise_server_exceptions=False)
    got_429 = False
    for _ in range(10):
        r = client.post("/chat", json={"message": "hi"}, headers={"X-User-ID": "rl-burst"})
        if r.status_code == 429:
            got_429 = True
            body = r.json()
            assert body.get("error") == "rate_limit_exceeded"
            assert "retry_after_seconds" in body
            assert r.headers.get("Retry-After") is not None
            assert r.headers.get("X-RateLimit-Remaining") == "0"
            break

    assert got_429, "Expected a 429 response in a burst of requests"
