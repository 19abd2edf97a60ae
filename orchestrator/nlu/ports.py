"""Contract-enforcing ports around the classification and extraction capabilities.

The engine only talks to these ports. Whatever the underlying capability
does (pattern matching, a hosted model), the ports guarantee:

- classification returns a domain intent or the fallback intent and never raises;
- extraction returns only validated values for declared slots and never raises.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from orchestrator.domain.schema import DomainConfig, SlotDefinition
from orchestrator.memory.models import FieldMap, is_empty_value

from .base import IntentClassifier, SlotExtractor
from .values import ValueRegistry, default_value_registry

logger = logging.getLogger("orchestrator.nlu")


class ClassificationPort:
    """Bounded, failure-absorbing access to an ``IntentClassifier``."""

    def __init__(self, classifier: IntentClassifier, *, timeout: float | None = 10.0) -> None:
        self._classifier = classifier
        self._timeout = timeout
        self._config: DomainConfig | None = None

    @property
    def classifier(self) -> IntentClassifier:
        return self._classifier

    def bind(self, config: DomainConfig) -> None:
        self._classifier.reset()
        self._classifier.configure(config)
        self._config = config

    def reset(self) -> None:
        self._classifier.reset()
        self._config = None

    async def classify(self, text: str) -> str:
        if self._config is None:
            return "unknown"

        fallback = self._config.options.fallback_intent
        try:
            intent = await asyncio.wait_for(self._classifier.classify(text), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("Intent classification timed out after %ss", self._timeout)
            return fallback
        except Exception:  # noqa: BLE001
            logger.exception("Intent classification failed")
            return fallback

        if intent not in self._config.intent_names():
            logger.info("Classifier returned %r outside domain %s", intent, self._config.name)
            return fallback
        return intent


class ExtractionPort:
    """Bounded, validating access to a ``SlotExtractor``.

    Unknown fields are dropped, enumerated values must match a declared
    choice exactly and values rejected by a slot validator are dropped.
    """

    def __init__(
        self,
        extractor: SlotExtractor,
        *,
        values: ValueRegistry | None = None,
        timeout: float | None = 10.0,
    ) -> None:
        self._extractor = extractor
        self._values = values or default_value_registry()
        self._timeout = timeout
        self._config: DomainConfig | None = None

    @property
    def extractor(self) -> SlotExtractor:
        return self._extractor

    def bind(self, config: DomainConfig) -> None:
        self._extractor.reset()
        self._extractor.configure(config)
        self._config = config

    def reset(self) -> None:
        self._extractor.reset()
        self._config = None

    async def extract(self, intent_name: str, text: str) -> FieldMap:
        if self._config is None or not self._config.declared_slot_names(intent_name):
            return {}

        try:
            raw = await asyncio.wait_for(
                self._extractor.extract(intent_name, text), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Slot extraction for %s timed out after %ss", intent_name, self._timeout)
            return {}
        except Exception:  # noqa: BLE001
            logger.exception("Slot extraction failed for %s", intent_name)
            return {}

        if not isinstance(raw, dict):
            logger.warning("Extractor returned %s instead of a mapping", type(raw).__name__)
            return {}
        return self.clean(intent_name, raw)

    def clean(self, intent_name: str, raw: dict[str, Any]) -> FieldMap:
        """Validate raw candidate values against the intent's slot schema."""

        cleaned: FieldMap = {}
        for name, value in raw.items():
            slot = self._config.slot_definition(intent_name, name) if self._config else None
            if slot is None:
                logger.debug("Dropping undeclared field %s for %s", name, intent_name)
                continue
            accepted = self._check_value(slot, value)
            if accepted is not None:
                cleaned[name] = accepted
        return cleaned

    def check_value(self, intent_name: str, slot_name: str, value: Any) -> str | None:
        """Accepted form of one candidate value, or None when the slot rejects it."""

        slot = self._config.slot_definition(intent_name, slot_name) if self._config else None
        if slot is None:
            return None
        return self._check_value(slot, value)

    def _check_value(self, slot: SlotDefinition, value: Any) -> str | None:
        if is_empty_value(value) or isinstance(value, (dict, list, tuple, set)):
            return None

        text = str(value).strip()
        if slot.is_enumerated:
            if text in slot.choices:
                return text
            logger.info("Invalid choice for %s: %r", slot.name, text)
            return None

        try:
            text = self._values.normalize(slot.normalizer, text)
        except Exception:  # noqa: BLE001
            logger.exception("Normalizer %s failed for %s", slot.normalizer, slot.name)
            return None
        if not text:
            return None
        if slot.validator:
            reason = self._values.validate(slot.validator, text)
            if reason is not None:
                logger.info("Validation failed for %s: %s", slot.name, reason)
                return None
        return text
