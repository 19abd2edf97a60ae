"""Follow-up questions asked while a slot collection is in progress."""

from __future__ import annotations

from typing import Mapping

from orchestrator.domain.schema import DomainConfig

DEFAULT_FOLLOW_UPS: dict[str, dict[str, str]] = {
    "schedule_appointment": {
        "service": "What type of service would you like to schedule?",
        "date": "What date would you prefer for your appointment?",
        "time": "What time works best for you?",
        "doctor": "Which doctor would you like to see?",
        "phone": "Could you please provide your phone number?",
    },
    "cancel_appointment": {
        "confirmation_id": "Could you please provide your appointment confirmation ID (e.g., APT-123456)?",
    },
    "check_availability": {
        "service": "What type of service are you looking for?",
        "date": "What date would you like to check availability for?",
    },
    "loan_inquiry": {
        "amount": "How much would you like to borrow?",
        "purpose": "What is the loan for?",
        "income": "What is your annual income?",
    },
    "balance_check": {
        "account_type": "Which account would you like to check? (checking, savings, credit)",
    },
    "transaction_history": {
        "account_type": "Which account's history would you like to see?",
        "date_range": "What time period would you like to see? (Last 30 days, Last 3 months, etc.)",
    },
    "symptom_check": {
        "symptoms": "Could you describe your symptoms in more detail?",
        "duration": "How long have you been experiencing these symptoms?",
    },
    "prescription_refill": {
        "medication": "Which medication do you need refilled?",
        "pharmacy": "Which pharmacy would you like to use?",
    },
}


def generic_follow_up(slot_name: str) -> str:
    return f"Could you please provide your {slot_name.replace('_', ' ')}?"


class FollowUpPhrasebook:
    """Per intent/slot phrasing with a generic fallback.

    Domain documents may override or extend the defaults through their
    ``follow_ups`` section.
    """

    def __init__(self, defaults: Mapping[str, Mapping[str, str]] | None = None) -> None:
        source = DEFAULT_FOLLOW_UPS if defaults is None else defaults
        self._defaults = {intent: dict(table) for intent, table in source.items()}

    def question(self, intent_name: str, slot_name: str, config: DomainConfig | None = None) -> str:
        if config is not None:
            override = config.follow_ups.get(intent_name, {}).get(slot_name)
            if override:
                return override
        phrasing = self._defaults.get(intent_name, {}).get(slot_name)
        return phrasing or generic_follow_up(slot_name)
