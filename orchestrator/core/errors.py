"""Exception taxonomy and HTTP exception handling utilities."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import Request
from fastapi.responses import JSONResponse

if TYPE_CHECKING:
    from orchestrator.domain.schema import ValidationResult

logger = logging.getLogger("orchestrator.errors")


class OrchestratorError(Exception):
    """Base class for errors raised by the orchestrator."""


class ConfigInvalidError(OrchestratorError):
    """A domain config failed validation and cannot be activated."""

    def __init__(self, domain: str, result: "ValidationResult") -> None:
        self.domain = domain
        self.result = result
        super().__init__(f"Domain '{domain}' is invalid: {'; '.join(result.errors)}")


class NoActiveDomainError(OrchestratorError):
    """An operation needs an active domain but none is loaded."""


class CapabilityFailure(OrchestratorError):
    """An external classification or extraction call failed or timed out."""


class UnknownSkillError(OrchestratorError):
    """A skill name has no registered handler."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No handler registered for skill '{name}'")


class SkillExecutionError(OrchestratorError):
    """A skill handler raised or returned something other than text."""

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        super().__init__(f"Skill '{name}' failed: {message}")


class SessionNotFoundError(OrchestratorError):
    """Raised by the HTTP layer when a session id does not resolve."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session '{session_id}' not found")


async def session_not_found_handler(request: Request, exc: SessionNotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"error": "session_not_found", "message": str(exc)},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    """Return a generic JSON error response while logging the exception."""

    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "Something unexpected happened. Please try again later.",
        },
    )
