"""Abstract classification and extraction capabilities."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from orchestrator.domain.schema import DomainConfig


class IntentClassifier(ABC):
    """Maps raw user text to an intent name of the bound domain."""

    name: str = "classifier"

    def __init__(self) -> None:
        self.config: DomainConfig | None = None

    def configure(self, config: DomainConfig) -> None:
        """Bind the classifier to a domain. Called on every domain switch."""

        self.config = config

    def reset(self) -> None:
        self.config = None

    @abstractmethod
    async def classify(self, text: str) -> str:
        """Return the intent name for ``text``. May raise; the port absorbs failures."""


class SlotExtractor(ABC):
    """Pulls candidate field values for an intent out of raw user text."""

    name: str = "extractor"

    def __init__(self) -> None:
        self.config: DomainConfig | None = None

    def configure(self, config: DomainConfig) -> None:
        self.config = config

    def reset(self) -> None:
        self.config = None

    @abstractmethod
    async def extract(self, intent_name: str, text: str) -> dict[str, Any]:
        """Return raw, unvalidated candidate values keyed by slot name."""
