"""Orchestration engine: classify, extract, merge, collect or execute, record."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Iterable, Mapping

from orchestrator.core.errors import (
    ConfigInvalidError,
    NoActiveDomainError,
    SkillExecutionError,
    UnknownSkillError,
)
from orchestrator.domain.loader import DomainConfigLoader
from orchestrator.domain.schema import DomainConfig, IntentDefinition, RuntimeConfig
from orchestrator.domain.validator import ConfigValidator
from orchestrator.memory.inference import PreferenceRule, default_rules
from orchestrator.memory.models import ConversationTurn, FieldMap, SlotCollectionState
from orchestrator.memory.store import ConversationStore
from orchestrator.nlu.base import IntentClassifier, SlotExtractor
from orchestrator.nlu.ports import ClassificationPort, ExtractionPort
from orchestrator.nlu.values import ValueRegistry, default_value_registry
from orchestrator.skills.registry import SkillRegistry

from .followups import FollowUpPhrasebook
from .merge import merge_fields, missing_slots
from .types import TurnOutcome, TurnResult

logger = logging.getLogger("orchestrator.engine")

NO_DOMAIN_MESSAGE = "No domain configuration loaded. Please load a domain first."
ERROR_MESSAGE = "Sorry, I encountered an error while processing your request. Please try again in a moment."
SKILL_ERROR_MESSAGE = "Sorry, I encountered an error while processing your request. Please try again."
HANDLER_MISSING_MESSAGE = "Sorry, I can't handle that request right now. The service is temporarily unavailable."
UNKNOWN_MESSAGE = "I'm sorry, I didn't understand that. Could you please rephrase your request?"
ABANDONED_MESSAGE = (
    "I still don't have the {slot} I need, so let's start over. "
    "What would you like to do?"
)


class Orchestrator:
    """Turns user messages into replies against the active domain.

    The store, skill registry and capabilities are injected. One message
    per session is processed at a time; different sessions run freely.
    """

    def __init__(
        self,
        *,
        store: ConversationStore,
        skills: SkillRegistry,
        classifier: IntentClassifier,
        extractor: SlotExtractor,
        values: ValueRegistry | None = None,
        preference_rules: Iterable[PreferenceRule] | None = None,
        phrasebook: FollowUpPhrasebook | None = None,
        capability_timeout: float | None = 10.0,
    ) -> None:
        self._store = store
        self._skills = skills
        self._values = values or default_value_registry()
        self._loader = DomainConfigLoader(ConfigValidator(skills=skills, values=self._values))
        self._classification = ClassificationPort(classifier, timeout=capability_timeout)
        self._extraction = ExtractionPort(extractor, values=self._values, timeout=capability_timeout)
        self._rules = list(preference_rules) if preference_rules is not None else default_rules()
        self._phrasebook = phrasebook or FollowUpPhrasebook()
        self._session_locks: dict[str, asyncio.Lock] = {}

    @property
    def store(self) -> ConversationStore:
        return self._store

    @property
    def skills(self) -> SkillRegistry:
        return self._skills

    # Domain management

    def load_domain(self, document: DomainConfig | Mapping[str, Any], *, strict: bool = False) -> RuntimeConfig:
        """Validate and store a domain; activate it when valid.

        With ``strict`` an invalid document raises ``ConfigInvalidError``
        instead of returning the failed result.
        """

        runtime = self._loader.load(document)
        if not runtime.is_valid:
            if strict:
                raise ConfigInvalidError(runtime.name, runtime.validation)
            return runtime
        self._bind(runtime.config)
        return runtime

    def switch_domain(self, name: str) -> bool:
        if not self._loader.switch_to(name):
            return False
        self._bind(self._loader.current.config)
        return True

    def available_domains(self) -> list[str]:
        return self._loader.loaded_domains()

    def get_domain(self, name: str) -> RuntimeConfig | None:
        return self._loader.get(name)

    def current_domain(self) -> dict[str, Any] | None:
        runtime = self._loader.current
        if runtime is None:
            return None
        config = runtime.config
        return {
            "name": config.name,
            "version": config.version,
            "description": config.description,
            "author": config.author,
            "intents": len(config.intents),
            "skills": len(config.skills),
            "loaded_at": runtime.loaded_at.isoformat(),
            "warnings": list(runtime.validation.warnings),
        }

    def supported_intents(self) -> list[dict[str, Any]]:
        runtime = self._loader.current
        if runtime is None:
            return []
        config = runtime.config
        return [
            {
                "name": intent.name,
                "description": intent.description,
                "examples": list(intent.examples),
                "slots": list(intent.required_slots),
                "has_slot_extraction": bool(config.slot_extraction_prompts.get(intent.name)),
            }
            for intent in config.intents
        ]

    def is_ready(self) -> bool:
        runtime = self._loader.current
        return runtime is not None and runtime.is_valid

    def status(self) -> dict[str, Any]:
        runtime = self._loader.current
        return {
            "ready": self.is_ready(),
            "current_domain": runtime.name if runtime else None,
            "loaded_domains": self.available_domains(),
            "supported_intents": len(runtime.config.intents) if runtime else 0,
            "active_sessions": len(self._store.session_ids()),
            "classifier": self._classification.classifier.name,
            "extractor": self._extraction.extractor.name,
        }

    def _bind(self, config: DomainConfig) -> None:
        self._classification.bind(config)
        self._extraction.bind(config)
        logger.info(
            "Engine bound to domain %s (%d intents, %d skills)",
            config.name,
            len(config.intents),
            len(config.skills),
        )

    # Conversations

    def start_conversation(self, user_id: str | None = None) -> str:
        runtime = self._loader.current
        if runtime is None:
            raise NoActiveDomainError(NO_DOMAIN_MESSAGE)
        session = self._store.create_session(runtime.name, user_id)
        return session.session_id

    def end_conversation(self, session_id: str) -> bool:
        """Delete the session. A turn already running finishes first."""

        lock = self._session_locks.get(session_id)
        if lock is not None and not lock.locked():
            del self._session_locks[session_id]
        return self._store.delete_session(session_id)

    def get_session_info(self, session_id: str) -> dict[str, Any] | None:
        session = self._store.get_session(session_id)
        if session is None:
            return None
        return {
            "session_id": session.session_id,
            "user_id": session.user_id,
            "domain": session.domain,
            "start_time": session.start_time.isoformat(),
            "last_activity": session.last_activity.isoformat(),
            "turn_count": len(session.turns),
            "current_topic": session.context.current_topic,
            "conversation_flow": list(session.context.conversation_flow),
            "preferences": dict(session.preferences),
            "slot_collection_in_progress": session.context.slot_collection is not None,
        }

    def get_conversation_summary(self, session_id: str) -> str:
        return self._store.get_conversation_summary(session_id)

    def cleanup_old_sessions(self, max_age_minutes: float = 60) -> int:
        removed = self._store.cleanup_old_sessions(max_age_minutes)
        live = set(self._store.session_ids())
        for session_id in list(self._session_locks):
            if session_id not in live and not self._session_locks[session_id].locked():
                del self._session_locks[session_id]
        return removed

    # Message processing

    async def process_message(self, session_id: str | None, text: str) -> str:
        result = await self.process_message_detailed(session_id, text)
        return result.response

    async def process_message_detailed(self, session_id: str | None, text: str) -> TurnResult:
        started = time.perf_counter()
        runtime = self._loader.current

        if runtime is None:
            return TurnResult(
                input=text,
                intent="error",
                slots={},
                response=NO_DOMAIN_MESSAGE,
                domain="none",
                session_id=session_id,
                outcome=TurnOutcome.NO_DOMAIN,
                processing_time_ms=_elapsed_ms(started),
            )

        if session_id is None:
            session_id = self._store.create_session(runtime.name).session_id

        lock = self._session_locks.setdefault(session_id, asyncio.Lock())
        async with lock:
            with self._store.in_flight(session_id):
                result = await self._run_turn(session_id, text, runtime.config)

        result.context = self._store.get_context(session_id)
        result.preferences = self._store.get_preferences(session_id) or {}
        result.processing_time_ms = _elapsed_ms(started)
        logger.info(
            "Session %s intent=%s outcome=%s in %.1fms",
            session_id,
            result.intent,
            result.outcome.value,
            result.processing_time_ms,
        )
        return result

    async def _run_turn(self, session_id: str, text: str, config: DomainConfig) -> TurnResult:
        try:
            state = self._store.get_slot_collection_state(session_id)
            context = self._store.get_context(session_id)
            preferences = self._store.get_preferences(session_id) or {}

            classified = await self._classification.classify(text)
            intent_name, state = self._resolve_intent(session_id, config, classified, state)
            intent = config.get_intent(intent_name)

            if intent is None:
                response = await self._unknown_response(config)
                result = self._result(text, intent_name, {}, response, config, session_id, TurnOutcome.UNKNOWN_INTENT)
            else:
                extracted = await self._extraction.extract(intent_name, text)
                collected = state.collected_slots if state and state.target_intent == intent_name else {}
                fields = merge_fields(
                    config.declared_slot_names(intent_name),
                    collected=collected,
                    extracted=extracted,
                    preferences=preferences,
                    entity_mentions=context.entity_mentions if context else None,
                    rules=self._rules,
                    check=lambda name, value: self._extraction.check_value(intent_name, name, value),
                )
                result = await self._collect_or_execute(session_id, text, config, intent, fields, state)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to process message for session %s", session_id)
            return self._result(text, "error", {}, ERROR_MESSAGE, config, session_id, TurnOutcome.ERROR)

        self._store.add_turn(
            session_id,
            ConversationTurn(
                user_input=text,
                detected_intent=result.intent,
                extracted_slots=dict(result.slots),
                response=result.response,
                domain=config.name,
            ),
        )
        return result

    def _resolve_intent(
        self,
        session_id: str,
        config: DomainConfig,
        classified: str,
        state: SlotCollectionState | None,
    ) -> tuple[str, SlotCollectionState | None]:
        """Decide whether this turn continues an active slot collection."""

        if state is None:
            return classified, None

        target = state.target_intent
        if config.get_intent(target) is None:
            logger.info("Dropping collection for %s, not part of domain %s", target, config.name)
            self._store.abandon_slot_collection(session_id)
            return classified, None

        candidate = config.get_intent(classified)
        if classified in (target, config.options.fallback_intent) or candidate is None:
            return target, state
        if candidate.required_slots:
            logger.info("Session %s switched from %s to %s", session_id, target, classified)
            self._store.abandon_slot_collection(session_id)
            return classified, None
        return classified, state

    async def _collect_or_execute(
        self,
        session_id: str,
        text: str,
        config: DomainConfig,
        intent: IntentDefinition,
        fields: FieldMap,
        state: SlotCollectionState | None,
    ) -> TurnResult:
        collecting = state is not None and state.target_intent == intent.name
        missing = missing_slots(intent.required_slots, fields)

        if not missing:
            if collecting:
                self._store.complete_slot_collection(session_id)
            response, outcome = await self._execute(config, intent, fields)
            if intent.name == config.options.fallback_intent and outcome is TurnOutcome.EXECUTED:
                outcome = TurnOutcome.UNKNOWN_INTENT
            return self._result(text, intent.name, fields, response, config, session_id, outcome)

        if not collecting:
            self._store.start_slot_collection(
                session_id,
                intent.name,
                intent.required_slots,
                max_attempts=config.options.max_slot_retries,
            )
        current = self._store.update_slot_collection(session_id, fields)
        max_attempts = current.max_attempts if current else config.options.max_slot_retries

        next_slot = missing[0]
        attempts = self._store.record_prompt(session_id, next_slot)
        if attempts > max_attempts:
            logger.info("Session %s gave up on %s after %d prompts", session_id, next_slot, attempts - 1)
            self._store.abandon_slot_collection(session_id)
            response = ABANDONED_MESSAGE.format(slot=next_slot.replace("_", " "))
            return self._result(text, intent.name, fields, response, config, session_id, TurnOutcome.ABANDONED, missing)

        response = self._phrasebook.question(intent.name, next_slot, config)
        return self._result(text, intent.name, fields, response, config, session_id, TurnOutcome.AWAITING_SLOTS, missing)

    async def _execute(self, config: DomainConfig, intent: IntentDefinition, fields: FieldMap) -> tuple[str, TurnOutcome]:
        handler_ref = config.skills.get(intent.skill)
        if not handler_ref:
            logger.error("Intent %s has no skill binding %s", intent.name, intent.skill)
            return HANDLER_MISSING_MESSAGE, TurnOutcome.ERROR
        try:
            return await self._skills.invoke(handler_ref, fields), TurnOutcome.EXECUTED
        except UnknownSkillError:
            logger.error("No handler registered for %s (intent %s)", handler_ref, intent.name)
            return HANDLER_MISSING_MESSAGE, TurnOutcome.ERROR
        except SkillExecutionError:
            logger.exception("Skill %s failed for intent %s", handler_ref, intent.name)
            return SKILL_ERROR_MESSAGE, TurnOutcome.ERROR

    async def _unknown_response(self, config: DomainConfig) -> str:
        handler_ref = config.skills.get("unknown")
        if handler_ref and handler_ref in self._skills:
            try:
                return await self._skills.invoke(handler_ref, {})
            except SkillExecutionError:
                logger.exception("Unknown-intent handler %s failed", handler_ref)
        return UNKNOWN_MESSAGE

    @staticmethod
    def _result(
        text: str,
        intent: str,
        fields: FieldMap,
        response: str,
        config: DomainConfig,
        session_id: str,
        outcome: TurnOutcome,
        missing: list[str] | None = None,
    ) -> TurnResult:
        return TurnResult(
            input=text,
            intent=intent,
            slots=dict(fields),
            response=response,
            domain=config.name,
            session_id=session_id,
            outcome=outcome,
            missing_slots=list(missing or []),
        )


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0

