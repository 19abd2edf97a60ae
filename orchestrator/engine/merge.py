"""Resolve the field map for a turn from fresh extraction and session state."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Sequence

from orchestrator.memory.inference import PreferenceRule
from orchestrator.memory.models import FieldMap, is_empty_value

ValueCheck = Callable[[str, Any], Any]


def merge_fields(
    slot_names: Sequence[str],
    *,
    collected: Mapping[str, Any] | None = None,
    extracted: Mapping[str, Any] | None = None,
    preferences: Mapping[str, Any] | None = None,
    entity_mentions: Mapping[str, Any] | None = None,
    rules: Iterable[PreferenceRule] = (),
    check: ValueCheck | None = None,
) -> FieldMap:
    """Merge sources for the slots an intent declares.

    Precedence: already collected values form the base, freshly extracted
    values override them, then gaps are filled from preference rules and
    finally from entity mentions earlier in the session. Earlier gap
    fillers win over later ones. Names outside ``slot_names`` are ignored.

    Backfilled candidates pass through ``check`` (slot name, value), which
    returns the accepted value or None to reject it.
    """

    declared = set(slot_names)
    fields: FieldMap = {}

    for source in (collected, extracted):
        for name, value in (source or {}).items():
            if name in declared and not is_empty_value(value):
                fields[name] = value

    def fill(name: str, value: Any) -> None:
        if name not in declared or name in fields or is_empty_value(value):
            return
        if check is not None:
            value = check(name, value)
            if is_empty_value(value):
                return
        fields[name] = value

    if preferences:
        for rule in rules:
            for name, value in rule.backfill(slot_names, fields, preferences).items():
                fill(name, value)

    for name, value in (entity_mentions or {}).items():
        fill(name, value)

    return fields


def missing_slots(required: Iterable[str], fields: Mapping[str, Any]) -> list[str]:
    return [name for name in required if is_empty_value(fields.get(name))]
