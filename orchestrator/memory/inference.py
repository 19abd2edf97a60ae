"""Passive preference inference from resolved slot values.

Rules observe each recorded turn and may later backfill slots the user
left out. They are best-effort enrichment and can be swapped independently
of the merge algorithm.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, Sequence

from .models import ConversationTurn, FieldMap

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_MORNING = re.compile(r"\bmorning\b|\d\s*a\.?m\b")
_AFTERNOON = re.compile(r"\bafternoon\b|\d\s*p\.?m\b")
_EVENING = re.compile(r"\bevening\b|\btonight\b")


class PreferenceRule(ABC):
    """Infers a preference from turns and fills a slot from that preference."""

    @abstractmethod
    def observe(self, turn: ConversationTurn, preferences: Mapping[str, Any]) -> dict[str, Any]:
        """Return preference updates implied by the turn (may be empty)."""

    @abstractmethod
    def backfill(
        self,
        slot_names: Sequence[str],
        fields: FieldMap,
        preferences: Mapping[str, Any],
    ) -> FieldMap:
        """Return values for missing slots that this preference can supply."""


class TimeOfDayRule(PreferenceRule):
    """Remember whether the user tends to pick mornings, afternoons or evenings."""

    slot_name = "time"
    preference_key = "preferred_time_of_day"

    def observe(self, turn: ConversationTurn, preferences: Mapping[str, Any]) -> dict[str, Any]:
        value = turn.extracted_slots.get(self.slot_name)
        if not isinstance(value, str):
            return {}
        lowered = value.lower()
        if _MORNING.search(lowered):
            return {self.preference_key: "morning"}
        if _AFTERNOON.search(lowered):
            return {self.preference_key: "afternoon"}
        if _EVENING.search(lowered):
            return {self.preference_key: "evening"}
        return {}

    def backfill(
        self,
        slot_names: Sequence[str],
        fields: FieldMap,
        preferences: Mapping[str, Any],
    ) -> FieldMap:
        preferred = preferences.get(self.preference_key)
        if self.slot_name in slot_names and self.slot_name not in fields and preferred:
            return {self.slot_name: preferred}
        return {}


class PreferredDaysRule(PreferenceRule):
    """Accumulate weekdays mentioned in date slots into a deduplicated list."""

    slot_name = "date"
    preference_key = "preferred_days"

    def observe(self, turn: ConversationTurn, preferences: Mapping[str, Any]) -> dict[str, Any]:
        value = turn.extracted_slots.get(self.slot_name)
        if not isinstance(value, str):
            return {}
        lowered = value.lower()
        mentioned = [day for day in WEEKDAYS if day in lowered]
        if not mentioned:
            return {}
        days = list(preferences.get(self.preference_key) or [])
        for day in mentioned:
            if day not in days:
                days.append(day)
        return {self.preference_key: days}

    def backfill(
        self,
        slot_names: Sequence[str],
        fields: FieldMap,
        preferences: Mapping[str, Any],
    ) -> FieldMap:
        days = preferences.get(self.preference_key) or []
        if self.slot_name in slot_names and self.slot_name not in fields and days:
            return {self.slot_name: days[0]}
        return {}


def default_rules() -> list[PreferenceRule]:
    return [TimeOfDayRule(), PreferredDaysRule()]


def infer_preferences(
    rules: Iterable[PreferenceRule],
    turn: ConversationTurn,
    preferences: Mapping[str, Any],
) -> dict[str, Any]:
    """Run every rule over a turn and return the combined updates."""

    updates: dict[str, Any] = {}
    for rule in rules:
        current = {**preferences, **updates}
        updates.update(rule.observe(turn, current))
    return updates
