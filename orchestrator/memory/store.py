"""Conversation store abstraction and in-memory implementation."""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from collections import Counter
from contextlib import contextmanager
from dataclasses import fields as dataclass_fields
from datetime import datetime, timedelta
from typing import Any, Callable, ContextManager, Iterable, Iterator, Mapping, Sequence

from .inference import PreferenceRule, default_rules, infer_preferences
from .models import (
    FLOW_LIMIT,
    SLOT_COLLECTION_ABANDONED,
    SLOT_COLLECTION_COMPLETE,
    SLOT_COLLECTION_START,
    TRIVIAL_INTENTS,
    ConversationContext,
    ConversationSession,
    ConversationTurn,
    FieldMap,
    SlotCollectionState,
    is_empty_value,
    utcnow,
)

logger = logging.getLogger("orchestrator.memory")

_CONTEXT_FIELDS = {f.name for f in dataclass_fields(ConversationContext)} - {"slot_collection"}


class ConversationStore(ABC):
    """Abstract interface for session-scoped conversation state.

    Every operation is keyed by session id. Reads on an unknown id return
    ``None`` (or an empty value) and writes on an unknown id are no-ops.
    """

    @abstractmethod
    def create_session(self, domain: str, user_id: str | None = None) -> ConversationSession:
        """Create and register a fresh session."""

    @abstractmethod
    def get_session(self, session_id: str) -> ConversationSession | None:
        """Return a snapshot of the session, or None when unknown."""

    @abstractmethod
    def delete_session(self, session_id: str) -> bool:
        """Remove a session. Returns whether it existed.

        A session that is mid-turn is removed once the turn finishes.
        """

    @abstractmethod
    def add_turn(self, session_id: str, turn: ConversationTurn) -> None:
        """Append a turn and recompute derived context and preferences."""

    @abstractmethod
    def get_recent_turns(self, session_id: str, count: int = 5) -> list[ConversationTurn]:
        """Return up to ``count`` most recent turns, oldest first."""

    @abstractmethod
    def get_context(self, session_id: str) -> ConversationContext | None:
        """Return a snapshot of the derived context."""

    @abstractmethod
    def get_preferences(self, session_id: str) -> dict[str, Any] | None:
        """Return a snapshot of inferred user preferences."""

    @abstractmethod
    def update_preferences(self, session_id: str, preferences: Mapping[str, Any]) -> None:
        """Merge preferences in: new keys add, existing keys overwrite, others persist."""

    @abstractmethod
    def start_slot_collection(
        self,
        session_id: str,
        target_intent: str,
        required_slots: Sequence[str],
        max_attempts: int | None = None,
    ) -> bool:
        """Begin collecting slots for an intent. False if one is already active."""

    @abstractmethod
    def update_slot_collection(self, session_id: str, slots: Mapping[str, Any]) -> SlotCollectionState | None:
        """Merge non-empty values into the active collection."""

    @abstractmethod
    def complete_slot_collection(self, session_id: str) -> None:
        """Clear the active collection and mark it complete in the flow."""

    @abstractmethod
    def abandon_slot_collection(self, session_id: str) -> None:
        """Clear the active collection and mark it abandoned in the flow."""

    @abstractmethod
    def record_prompt(self, session_id: str, slot_name: str) -> int:
        """Count a follow-up question for a slot."""

    @abstractmethod
    def get_slot_collection_state(self, session_id: str) -> SlotCollectionState | None:
        """Return a snapshot of the active collection, if any."""

    @abstractmethod
    def get_conversation_summary(self, session_id: str) -> str:
        """Short operator-facing recap of the session."""

    @abstractmethod
    def session_ids(self) -> list[str]:
        """Ids of every live session."""

    @abstractmethod
    def in_flight(self, session_id: str) -> ContextManager[None]:
        """Context manager marking the session as mid-turn."""

    @abstractmethod
    def cleanup_old_sessions(self, max_age_minutes: float = 60) -> int:
        """Evict idle sessions and return how many were removed."""


class InMemoryConversationStore(ConversationStore):
    """Process-local store. State lives only as long as the process.

    Callers only ever receive deep copies, so the store stays the single
    writer of ``last_activity`` and the derived context.
    """

    def __init__(
        self,
        *,
        preference_rules: Iterable[PreferenceRule] | None = None,
        clock: Callable[[], datetime] = utcnow,
        default_max_attempts: int = 3,
    ) -> None:
        self._sessions: dict[str, ConversationSession] = {}
        self._lock = threading.RLock()
        self._in_flight: Counter[str] = Counter()
        self._pending_delete: set[str] = set()
        self._rules = list(preference_rules) if preference_rules is not None else default_rules()
        self._clock = clock
        self._default_max_attempts = default_max_attempts

    # Session management

    def create_session(self, domain: str, user_id: str | None = None) -> ConversationSession:
        now = self._clock()
        session = ConversationSession(
            session_id=self._generate_session_id(),
            domain=domain,
            user_id=user_id,
            start_time=now,
            last_activity=now,
        )
        with self._lock:
            self._sessions[session.session_id] = session
            snapshot = copy.deepcopy(session)
        logger.info("Created session %s for domain %s", session.session_id, domain)
        return snapshot

    def get_session(self, session_id: str) -> ConversationSession | None:
        with self._lock:
            session = self._sessions.get(session_id)
            return copy.deepcopy(session) if session else None

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            if session_id not in self._sessions:
                return False
            if session_id in self._in_flight:
                self._pending_delete.add(session_id)
                logger.info("Session %s is mid-turn; deleting when the turn ends", session_id)
                return True
            del self._sessions[session_id]
        logger.info("Deleted session %s", session_id)
        return True

    def session_ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def active_session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    # Turns and derived context

    def add_turn(self, session_id: str, turn: ConversationTurn) -> None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                logger.warning("Dropping turn for unknown session %s", session_id)
                return

            stored = ConversationTurn(
                user_input=turn.user_input,
                detected_intent=turn.detected_intent,
                extracted_slots=dict(turn.extracted_slots),
                response=turn.response,
                domain=turn.domain,
                timestamp=turn.timestamp,
            )
            session.turns.append(stored)
            self._apply_turn(session, stored)
            self._touch(session)
            logger.debug("Session %s now has %d turns", session_id, len(session.turns))

    def get_recent_turns(self, session_id: str, count: int = 5) -> list[ConversationTurn]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or count <= 0:
                return []
            return copy.deepcopy(session.turns[-count:])

    def update_context(self, session_id: str, changes: Mapping[str, Any]) -> None:
        unknown = set(changes) - _CONTEXT_FIELDS
        if unknown:
            raise ValueError(f"Unknown context fields: {', '.join(sorted(unknown))}")

        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return
            for name, value in changes.items():
                setattr(session.context, name, copy.deepcopy(value))
            if len(session.context.conversation_flow) > FLOW_LIMIT:
                del session.context.conversation_flow[:-FLOW_LIMIT]
            self._touch(session)

    def get_context(self, session_id: str) -> ConversationContext | None:
        with self._lock:
            session = self._sessions.get(session_id)
            return copy.deepcopy(session.context) if session else None

    def update_preferences(self, session_id: str, preferences: Mapping[str, Any]) -> None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return
            session.preferences.update(copy.deepcopy(dict(preferences)))
            self._touch(session)
        logger.debug("Updated preferences for session %s: %s", session_id, sorted(preferences))

    def get_preferences(self, session_id: str) -> dict[str, Any] | None:
        with self._lock:
            session = self._sessions.get(session_id)
            return copy.deepcopy(session.preferences) if session else None

    # Slot collection

    def start_slot_collection(
        self,
        session_id: str,
        target_intent: str,
        required_slots: Sequence[str],
        max_attempts: int | None = None,
    ) -> bool:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return False
            if session.context.slot_collection is not None:
                logger.warning(
                    "Session %s already collecting slots for %s",
                    session_id,
                    session.context.slot_collection.target_intent,
                )
                return False

            state = SlotCollectionState(
                target_intent=target_intent,
                required_slots=list(required_slots),
                max_attempts=max_attempts or self._default_max_attempts,
            )
            state.recompute_missing()
            session.context.slot_collection = state
            session.context.push_flow(SLOT_COLLECTION_START)
            self._touch(session)
        logger.info("Started slot collection for %s in session %s", target_intent, session_id)
        return True

    def update_slot_collection(self, session_id: str, slots: Mapping[str, Any]) -> SlotCollectionState | None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.context.slot_collection is None:
                return None

            state = session.context.slot_collection
            for name, value in slots.items():
                if not is_empty_value(value):
                    state.collected_slots[name] = value
            state.recompute_missing()
            self._touch(session)
            logger.debug(
                "Session %s collected=%s missing=%s",
                session_id,
                sorted(state.collected_slots),
                state.missing_slots,
            )
            return copy.deepcopy(state)

    def record_prompt(self, session_id: str, slot_name: str) -> int:
        """Count a follow-up question for ``slot_name`` and return the new total."""

        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.context.slot_collection is None:
                return 0
            state = session.context.slot_collection
            state.attempts_per_slot[slot_name] = state.attempts_per_slot.get(slot_name, 0) + 1
            state.last_prompted_slot = slot_name
            self._touch(session)
            return state.attempts_per_slot[slot_name]

    def complete_slot_collection(self, session_id: str) -> None:
        self._clear_slot_collection(session_id, SLOT_COLLECTION_COMPLETE)

    def abandon_slot_collection(self, session_id: str) -> None:
        self._clear_slot_collection(session_id, SLOT_COLLECTION_ABANDONED)

    def get_slot_collection_state(self, session_id: str) -> SlotCollectionState | None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.context.slot_collection is None:
                return None
            return copy.deepcopy(session.context.slot_collection)

    def get_collected_slots(self, session_id: str) -> FieldMap:
        state = self.get_slot_collection_state(session_id)
        return dict(state.collected_slots) if state else {}

    def is_waiting_for_slot(self, session_id: str, slot_name: str) -> bool:
        state = self.get_slot_collection_state(session_id)
        return state is not None and slot_name in state.missing_slots

    # Analysis helpers

    def get_conversation_summary(self, session_id: str) -> str:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return ""
            intents = [turn.detected_intent for turn in session.turns[-3:]]
            topic = session.context.current_topic or "general"
            flow = session.context.conversation_flow[-3:]

        recent = " → ".join(intents) if intents else "none"
        return f"Recent conversation: {recent}. Current topic: {topic}. Flow: {' → '.join(flow)}"

    def find_recent_mentions(self, session_id: str, entity_type: str, *, limit: int = 10) -> list[dict[str, Any]]:
        """Return slot values from recent turns whose slot name contains ``entity_type``."""

        needle = entity_type.lower()
        mentions: list[dict[str, Any]] = []
        for turn in self.get_recent_turns(session_id, limit):
            for name, value in turn.extracted_slots.items():
                if needle in name.lower():
                    mentions.append({"timestamp": turn.timestamp, "slot": name, "value": value})
        return mentions

    # Lifecycle

    @contextmanager
    def in_flight(self, session_id: str) -> Iterator[None]:
        """Mark a session as mid-turn.

        Cleanup skips it and an explicit delete is deferred until exit.
        """

        with self._lock:
            self._in_flight[session_id] += 1
        try:
            yield
        finally:
            with self._lock:
                self._in_flight[session_id] -= 1
                if self._in_flight[session_id] <= 0:
                    del self._in_flight[session_id]
                    if session_id in self._pending_delete:
                        self._pending_delete.discard(session_id)
                        self._sessions.pop(session_id, None)
                        logger.info("Deleted session %s", session_id)

    def cleanup_old_sessions(self, max_age_minutes: float = 60) -> int:
        cutoff = self._clock() - timedelta(minutes=max_age_minutes)
        with self._lock:
            expired = [
                session_id
                for session_id, session in self._sessions.items()
                if session.last_activity < cutoff and session_id not in self._in_flight
            ]
            for session_id in expired:
                del self._sessions[session_id]

        if expired:
            logger.info("Cleaned up %d idle sessions", len(expired))
        return len(expired)

    # Internals

    def _apply_turn(self, session: ConversationSession, turn: ConversationTurn) -> None:
        context = session.context
        context.last_intent = turn.detected_intent
        if turn.detected_intent not in TRIVIAL_INTENTS:
            context.current_topic = turn.detected_intent
        context.push_flow(turn.detected_intent)

        for name, value in turn.extracted_slots.items():
            if not is_empty_value(value):
                context.entity_mentions[name] = value

        updates = infer_preferences(self._rules, turn, session.preferences)
        if updates:
            session.preferences.update(updates)

    def _clear_slot_collection(self, session_id: str, marker: str) -> None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return
            session.context.slot_collection = None
            session.context.push_flow(marker)
            self._touch(session)
        logger.info("Slot collection %s for session %s", marker.rsplit("_", 1)[-1], session_id)

    def _touch(self, session: ConversationSession) -> None:
        now = self._clock()
        if now > session.last_activity:
            session.last_activity = now

    @staticmethod
    def _generate_session_id() -> str:
        return f"conv_{uuid.uuid4().hex}"
