"""Dataclasses representing conversation sessions, turns and derived context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Union

FieldValue = Union[str, int, float, bool]
FieldMap = dict[str, FieldValue]

SESSION_START = "session_start"
SLOT_COLLECTION_START = "slot_collection_start"
SLOT_COLLECTION_COMPLETE = "slot_collection_complete"
SLOT_COLLECTION_ABANDONED = "slot_collection_abandoned"

# Intents that never become the conversation topic.
TRIVIAL_INTENTS = frozenset({"greet", "exit", "unknown"})

FLOW_LIMIT = 10


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_empty_value(value: Any) -> bool:
    """Return True for values that must never count as a collected slot."""

    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


@dataclass(frozen=True, slots=True)
class ConversationTurn:
    """Single exchange recorded in a session. Never mutated once stored."""

    user_input: str
    detected_intent: str
    extracted_slots: FieldMap
    response: str
    domain: str
    timestamp: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class SlotCollectionState:
    """Progress of a multi-turn slot collection for one target intent."""

    target_intent: str
    required_slots: list[str]
    collected_slots: FieldMap = field(default_factory=dict)
    missing_slots: list[str] = field(default_factory=list)
    attempts_per_slot: dict[str, int] = field(default_factory=dict)
    max_attempts: int = 3
    last_prompted_slot: str | None = None

    def recompute_missing(self) -> None:
        self.missing_slots = [
            name for name in self.required_slots if name not in self.collected_slots
        ]


@dataclass(slots=True)
class ConversationContext:
    """Context derived incrementally from the turns of a session."""

    current_domain: str
    current_topic: str | None = None
    last_intent: str | None = None
    entity_mentions: FieldMap = field(default_factory=dict)
    conversation_flow: list[str] = field(default_factory=lambda: [SESSION_START])
    slot_collection: SlotCollectionState | None = None

    def push_flow(self, marker: str) -> None:
        self.conversation_flow.append(marker)
        if len(self.conversation_flow) > FLOW_LIMIT:
            del self.conversation_flow[:-FLOW_LIMIT]


@dataclass(slots=True)
class ConversationSession:
    """Aggregated state of one conversation, owned by the conversation store."""

    session_id: str
    domain: str
    user_id: str | None = None
    start_time: datetime = field(default_factory=utcnow)
    last_activity: datetime = field(default_factory=utcnow)
    turns: list[ConversationTurn] = field(default_factory=list)
    context: ConversationContext | None = None
    preferences: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.context is None:
            self.context = ConversationContext(current_domain=self.domain)
