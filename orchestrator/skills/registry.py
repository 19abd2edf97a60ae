"""Skill registry mapping handler names to callables."""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Iterable, Mapping, Union

from orchestrator.core.errors import SkillExecutionError, UnknownSkillError
from orchestrator.memory.models import FieldMap

SkillHandler = Callable[[FieldMap], Union[str, Awaitable[str]]]

logger = logging.getLogger("orchestrator.skills")


class SkillRegistry:
    """Lookup table of skill handlers. Handlers may be sync or async."""

    def __init__(self, handlers: Mapping[str, SkillHandler] | None = None) -> None:
        self._handlers: dict[str, SkillHandler] = dict(handlers or {})

    def register(self, name: str, handler: SkillHandler) -> None:
        if not callable(handler):
            raise TypeError(f"Skill '{name}' must be callable")
        if name in self._handlers:
            logger.debug("Replacing skill handler %s", name)
        self._handlers[name] = handler

    def register_many(self, handlers: Mapping[str, SkillHandler]) -> None:
        for name, handler in handlers.items():
            self.register(name, handler)

    def unregister(self, name: str) -> None:
        self._handlers.pop(name, None)

    def get(self, name: str) -> SkillHandler | None:
        return self._handlers.get(name)

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def missing(self, names: Iterable[str]) -> list[str]:
        return [name for name in names if name not in self._handlers]

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    async def invoke(self, name: str, fields: FieldMap) -> str:
        """Run a handler with a copy of ``fields`` and return its reply text."""

        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownSkillError(name)

        try:
            result = handler(dict(fields))
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:  # noqa: BLE001
            raise SkillExecutionError(name, str(exc) or exc.__class__.__name__) from exc

        if not isinstance(result, str):
            raise SkillExecutionError(name, f"expected text, got {type(result).__name__}")
        return result
