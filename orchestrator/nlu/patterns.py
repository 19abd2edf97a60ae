"""Regex and keyword based classifier and extractor."""

from __future__ import annotations

import re
from typing import Any

from orchestrator.domain.schema import DomainConfig, SlotDefinition

from .base import IntentClassifier, SlotExtractor


def _word_pattern(phrase: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\w){re.escape(phrase.lower())}(?!\w)")


class PatternIntentClassifier(IntentClassifier):
    """First intent (in declaration order) whose match hint is found wins.

    The fallback intent is never matched by its hints; it is what remains
    when nothing else matches.
    """

    name = "pattern-classifier"

    def __init__(self) -> None:
        super().__init__()
        self._compiled: list[tuple[str, list[re.Pattern[str]]]] = []

    def configure(self, config: DomainConfig) -> None:
        super().configure(config)
        fallback = config.options.fallback_intent
        self._compiled = [
            (intent.name, [re.compile(hint, re.IGNORECASE) for hint in intent.match_hints])
            for intent in config.intents
            if intent.name != fallback
        ]

    def reset(self) -> None:
        super().reset()
        self._compiled = []

    async def classify(self, text: str) -> str:
        if self.config is None:
            raise RuntimeError("Classifier is not bound to a domain")

        fallback = self.config.options.fallback_intent
        if not text or not text.strip():
            return fallback

        for intent_name, patterns in self._compiled:
            if any(pattern.search(text) for pattern in patterns):
                return intent_name
        return fallback


class PatternSlotExtractor(SlotExtractor):
    """Extract slot values using each slot's patterns, choices and synonyms."""

    name = "pattern-extractor"

    async def extract(self, intent_name: str, text: str) -> dict[str, Any]:
        if self.config is None:
            raise RuntimeError("Extractor is not bound to a domain")

        updates: dict[str, Any] = {}
        if not text or not text.strip():
            return updates

        lowered = text.lower()
        for slot in self.config.slots_for(intent_name):
            value = (
                self._match_choice(slot, lowered)
                if slot.is_enumerated
                else self._match_pattern(slot, text)
            )
            if value is not None:
                updates[slot.name] = value
        return updates

    @staticmethod
    def _match_choice(slot: SlotDefinition, lowered: str) -> str | None:
        for choice in slot.choices:
            if _word_pattern(choice).search(lowered):
                return choice
        for keyword, choice in slot.synonyms.items():
            if _word_pattern(keyword).search(lowered):
                return choice
        return None

    @staticmethod
    def _match_pattern(slot: SlotDefinition, text: str) -> str | None:
        for pattern in slot.patterns:
            match = re.search(pattern, text, re.IGNORECASE)
            if not match:
                continue
            if "value" in match.re.groupindex:
                value = match.group("value")
            elif match.re.groups:
                value = match.group(1)
            else:
                value = match.group(0)
            if value and value.strip():
                return value.strip()
        return None
