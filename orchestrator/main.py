"""FastAPI application entry point for the dialogue orchestrator."""

import asyncio
import logging
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from orchestrator.api.conversations import create_conversations_router
from orchestrator.api.domains import create_domains_router
from orchestrator.bootstrap import build_orchestrator, load_startup_domains
from orchestrator.core.config import get_settings
from orchestrator.core.errors import SessionNotFoundError, session_not_found_handler, unhandled_exception_handler
from orchestrator.core.logging import configure_logging, request_id_middleware
from orchestrator.core.metrics import MetricsCollector
from orchestrator.core.rate_limit import create_rate_limit_middleware

settings = get_settings()
logger = logging.getLogger("orchestrator.app")

engine = build_orchestrator(settings)
failed_domains = load_startup_domains(engine, settings)
metrics = MetricsCollector()

app = FastAPI(title=settings.app_name, version="0.1.0", docs_url="/docs")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(request_id_middleware)
app.middleware("http")(create_rate_limit_middleware(settings))

app.include_router(create_domains_router(engine))
app.include_router(create_conversations_router(engine))


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Return basic service status for monitoring."""

    return {"status": "ok"}


@app.get("/ready", tags=["health"])
async def readiness_probe() -> dict[str, Any]:
    """Readiness endpoint.

    The service is ready when a valid domain is active. Domains that failed
    to load at startup degrade the status without failing it.
    """

    status = engine.status()
    components: dict[str, dict[str, Any]] = {
        "domain": {
            "ok": status["ready"],
            "current": status["current_domain"],
            "loaded": status["loaded_domains"],
            **({"failed": failed_domains} if failed_domains else {}),
        },
        "nlu": {
            "ok": True,
            "backend": settings.nlu_backend,
            "classifier": status["classifier"],
            "extractor": status["extractor"],
        },
        "sessions": {"ok": True, "active": status["active_sessions"]},
    }

    if not status["ready"]:
        overall = "fail"
    elif failed_domains:
        overall = "degraded"
    else:
        overall = "ok"

    return {
        "status": overall,
        "environment": settings.environment,
        "components": components,
    }


@app.post("/chat", tags=["chat"])
async def chat(message: dict) -> dict:
    """Process one user message against the active domain."""

    session_id = message.get("session_id")
    content = message.get("message")

    if content is None or not isinstance(content, str):
        raise HTTPException(status_code=400, detail="message is required")
    if session_id is not None and engine.get_session_info(str(session_id)) is None:
        raise SessionNotFoundError(str(session_id))

    result = await engine.process_message_detailed(session_id, content)
    metrics.record_turn(result.intent, result.outcome.value, result.domain)
    return result.to_dict()


@app.get("/metrics", tags=["metrics"])
async def metrics_endpoint() -> dict:
    snapshot = metrics.snapshot()
    return {
        "total_turns": snapshot.total_turns,
        "intents": snapshot.intents,
        "outcomes": snapshot.outcomes,
        "domains": snapshot.domains,
        "active_sessions": len(engine.store.session_ids()),
    }


async def _cleanup_sessions_periodically(interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        removed = engine.cleanup_old_sessions(settings.session_max_age_minutes)
        if removed:
            logger.info("Evicted %d idle sessions", removed)


@app.on_event("startup")
async def on_startup() -> None:
    level = configure_logging(settings.log_level)
    logger.info("Logging configured at %s level for %s environment", logging.getLevelName(level), settings.environment)
    if failed_domains:
        logger.warning("Domains failed to load at startup: %s", ", ".join(failed_domains))

    app.state.cleanup_task = None
    if settings.session_cleanup_interval_seconds > 0:
        app.state.cleanup_task = asyncio.create_task(
            _cleanup_sessions_periodically(settings.session_cleanup_interval_seconds)
        )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    task = getattr(app.state, "cleanup_task", None)
    if task is not None:
        task.cancel()


app.add_exception_handler(SessionNotFoundError, session_not_found_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)
