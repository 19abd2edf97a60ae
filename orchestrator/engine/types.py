"""Engine result types."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from orchestrator.memory.models import ConversationContext, FieldMap


class TurnOutcome(str, Enum):
    """How a single message was resolved."""

    EXECUTED = "executed"
    AWAITING_SLOTS = "awaiting_slots"
    UNKNOWN_INTENT = "unknown_intent"
    ABANDONED = "abandoned"
    NO_DOMAIN = "no_domain"
    ERROR = "error"


@dataclass(slots=True)
class TurnResult:
    """Everything the engine knows about one processed message."""

    input: str
    intent: str
    slots: FieldMap
    response: str
    domain: str
    session_id: str | None
    outcome: TurnOutcome
    missing_slots: list[str] = field(default_factory=list)
    context: ConversationContext | None = None
    preferences: dict[str, Any] = field(default_factory=dict)
    processing_time_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "input": self.input,
            "intent": self.intent,
            "slots": dict(self.slots),
            "response": self.response,
            "domain": self.domain,
            "session_id": self.session_id,
            "outcome": self.outcome.value,
            "missing_slots": list(self.missing_slots),
            "context": context_to_dict(self.context),
            "preferences": dict(self.preferences),
            "processing_time_ms": round(self.processing_time_ms, 2),
        }


def context_to_dict(context: ConversationContext | None) -> dict[str, Any] | None:
    if context is None:
        return None
    return asdict(context)
