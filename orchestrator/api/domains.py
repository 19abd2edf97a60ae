"""API routes for loading, listing and switching domains."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from orchestrator.core.errors import ConfigInvalidError
from orchestrator.domain.loader import builtin_domain_names, read_builtin_domain
from orchestrator.engine.orchestrator import NO_DOMAIN_MESSAGE, Orchestrator


def create_domains_router(engine: Orchestrator) -> APIRouter:
    router = APIRouter(prefix="/domains", tags=["domains"])

    @router.get("")
    async def list_domains() -> dict:
        domains = []
        for name in engine.available_domains():
            runtime = engine.get_domain(name)
            if runtime is None:
                continue
            domains.append(
                {
                    "name": runtime.name,
                    "version": runtime.config.version,
                    "is_valid": runtime.is_valid,
                    "errors": list(runtime.validation.errors),
                    "warnings": list(runtime.validation.warnings),
                    "loaded_at": runtime.loaded_at.isoformat(),
                }
            )
        return {
            "current": engine.current_domain(),
            "domains": domains,
            "builtin": builtin_domain_names(),
        }

    @router.post("")
    async def load_domain(payload: dict) -> dict:
        document = payload.get("document")
        builtin = payload.get("builtin")

        if document is None and not builtin:
            raise HTTPException(status_code=400, detail="document or builtin is required")
        if document is None:
            try:
                document = read_builtin_domain(str(builtin))
            except FileNotFoundError as exc:
                raise HTTPException(status_code=404, detail=str(exc)) from exc
        if not isinstance(document, dict):
            raise HTTPException(status_code=400, detail="document must be an object")

        try:
            runtime = engine.load_domain(document, strict=True)
        except ConfigInvalidError as exc:
            raise HTTPException(
                status_code=422,
                detail={
                    "message": f"Domain '{exc.domain}' failed validation",
                    "errors": exc.result.errors,
                    "warnings": exc.result.warnings,
                },
            ) from exc

        return {
            "name": runtime.name,
            "is_valid": runtime.is_valid,
            "warnings": list(runtime.validation.warnings),
            "current": engine.current_domain(),
        }

    @router.post("/switch")
    async def switch_domain(payload: dict) -> dict:
        name = payload.get("name")
        if not name:
            raise HTTPException(status_code=400, detail="name is required")
        if not engine.switch_domain(str(name)):
            raise HTTPException(status_code=404, detail=f"Domain '{name}' is not loaded or is invalid")
        return {"current": engine.current_domain()}

    @router.get("/current/intents")
    async def current_intents() -> dict:
        current = engine.current_domain()
        if current is None:
            raise HTTPException(status_code=409, detail=NO_DOMAIN_MESSAGE)
        return {"domain": current["name"], "intents": engine.supported_intents()}

    return router
