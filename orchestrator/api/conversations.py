"""API routes for the conversation session lifecycle."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from orchestrator.core.errors import NoActiveDomainError, SessionNotFoundError
from orchestrator.engine.orchestrator import Orchestrator


def create_conversations_router(engine: Orchestrator) -> APIRouter:
    router = APIRouter(prefix="/conversations", tags=["conversations"])

    @router.post("")
    async def start_conversation(payload: dict | None = None) -> dict:
        user_id = (payload or {}).get("user_id")
        try:
            session_id = engine.start_conversation(user_id)
        except NoActiveDomainError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return {"session_id": session_id, "session": engine.get_session_info(session_id)}

    @router.get("")
    async def list_conversations() -> list[str]:
        """List live conversation identifiers (development helper)."""

        return engine.store.session_ids()

    @router.get("/{session_id}")
    async def get_conversation(session_id: str) -> dict:
        info = engine.get_session_info(session_id)
        if info is None:
            raise SessionNotFoundError(session_id)
        return info

    @router.get("/{session_id}/summary")
    async def get_summary(session_id: str) -> dict:
        if engine.get_session_info(session_id) is None:
            raise SessionNotFoundError(session_id)
        return {"session_id": session_id, "summary": engine.get_conversation_summary(session_id)}

    @router.delete("/{session_id}")
    async def end_conversation(session_id: str) -> dict:
        if not engine.end_conversation(session_id):
            raise SessionNotFoundError(session_id)
        return {"session_id": session_id, "deleted": True}

    return router
