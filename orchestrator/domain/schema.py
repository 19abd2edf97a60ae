"""Domain configuration data model.

A domain document is plain data (a mapping parsed from YAML/JSON or built
in-process). Validators, normalizers and skill handlers are referenced by
name and resolved through registries owned by the host process.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from orchestrator.memory.models import utcnow


class SlotKind(str, Enum):
    """Supported slot value kinds."""

    SCALAR = "scalar"
    ENUMERATED = "enumerated"


@dataclass(frozen=True, slots=True)
class SlotDefinition:
    """One named piece of information an intent may need."""

    name: str
    prompt: str
    kind: str = SlotKind.SCALAR.value
    choices: tuple[str, ...] = ()
    validator: str | None = None
    normalizer: str | None = None
    patterns: tuple[str, ...] = ()
    synonyms: Mapping[str, str] = field(default_factory=dict)
    description: str = ""

    @property
    def is_enumerated(self) -> bool:
        return self.kind == SlotKind.ENUMERATED.value


@dataclass(frozen=True, slots=True)
class IntentDefinition:
    """An intent, how to recognise it and which skill answers it."""

    name: str
    match_hints: tuple[str, ...]
    skill: str
    required_slots: tuple[str, ...] = ()
    description: str = ""
    examples: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class DomainOptions:
    """Global knobs. ``model`` is passed through to hosted-model capabilities untouched."""

    fallback_intent: str = "unknown"
    max_slot_retries: int = 3
    model: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DomainConfig:
    """Complete declarative description of one conversational domain."""

    name: str
    version: str
    description: str = ""
    author: str = ""
    created: str = ""
    intents: tuple[IntentDefinition, ...] = ()
    slots: Mapping[str, tuple[SlotDefinition, ...]] = field(default_factory=dict)
    intent_detection_prompt: str = ""
    slot_extraction_prompts: Mapping[str, str] = field(default_factory=dict)
    skills: Mapping[str, str] = field(default_factory=dict)
    follow_ups: Mapping[str, Mapping[str, str]] = field(default_factory=dict)
    options: DomainOptions = field(default_factory=DomainOptions)
    parse_errors: tuple[str, ...] = ()

    def get_intent(self, name: str) -> IntentDefinition | None:
        for intent in self.intents:
            if intent.name == name:
                return intent
        return None

    def intent_names(self) -> list[str]:
        return [intent.name for intent in self.intents]

    def slots_for(self, intent_name: str) -> tuple[SlotDefinition, ...]:
        return tuple(self.slots.get(intent_name, ()))

    def slot_definition(self, intent_name: str, slot_name: str) -> SlotDefinition | None:
        for slot in self.slots.get(intent_name, ()):
            if slot.name == slot_name:
                return slot
        return None

    def declared_slot_names(self, intent_name: str) -> list[str]:
        """Required slots first, then any other slot defined for the intent."""

        intent = self.get_intent(intent_name)
        names = list(intent.required_slots) if intent else []
        for slot in self.slots.get(intent_name, ()):
            if slot.name not in names:
                names.append(slot.name)
        return names

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "DomainConfig":
        """Build a config from a structured document without raising.

        Structural problems are recorded in ``parse_errors`` so the validator
        can report them alongside semantic errors.
        """

        problems: list[str] = []
        if not isinstance(document, Mapping):
            return cls(name="", version="", parse_errors=("Domain document must be a mapping",))

        metadata = _mapping(document.get("metadata"), "metadata", problems)
        intents = tuple(
            _parse_intent(item, index, problems)
            for index, item in enumerate(_sequence(document.get("intents"), "intents", problems))
        )

        slots: dict[str, tuple[SlotDefinition, ...]] = {}
        for intent_name, group in _mapping(document.get("slots"), "slots", problems).items():
            slots[str(intent_name)] = tuple(
                _parse_slot(item, str(intent_name), problems)
                for item in _sequence(group, f"slots.{intent_name}", problems)
            )

        prompts = _mapping(document.get("prompt_templates"), "prompt_templates", problems)
        extraction_prompts = _mapping(
            prompts.get("slot_extraction"), "prompt_templates.slot_extraction", problems
        )
        skills = _mapping(document.get("skills"), "skills", problems)
        follow_ups = _mapping(document.get("follow_ups"), "follow_ups", problems)
        raw_options = _mapping(document.get("options"), "options", problems)

        options = DomainOptions(
            fallback_intent=str(raw_options.get("fallback_intent") or "unknown"),
            max_slot_retries=_positive_int(raw_options.get("max_slot_retries"), 3, problems),
            model=dict(_mapping(raw_options.get("model"), "options.model", problems)),
        )

        return cls(
            name=_text(metadata.get("name")),
            version=_text(metadata.get("version")),
            description=_text(metadata.get("description")),
            author=_text(metadata.get("author")),
            created=_text(metadata.get("created")),
            intents=intents,
            slots=slots,
            intent_detection_prompt=_text(prompts.get("intent_detection")),
            slot_extraction_prompts={str(k): _text(v) for k, v in extraction_prompts.items()},
            skills={str(k): _text(v) for k, v in skills.items()},
            follow_ups={
                str(intent): {str(slot): _text(text) for slot, text in _mapping(table, f"follow_ups.{intent}", problems).items()}
                for intent, table in follow_ups.items()
            },
            options=options,
            parse_errors=tuple(problems),
        )


@dataclass(slots=True)
class ValidationResult:
    """Structured outcome of validating a domain config."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class RuntimeConfig:
    """A domain config as loaded into the process."""

    config: DomainConfig
    validation: ValidationResult
    loaded_at: datetime = field(default_factory=utcnow)

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def is_valid(self) -> bool:
        return self.validation.is_valid


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip() if isinstance(value, str) else str(value)


def _mapping(value: Any, label: str, problems: list[str]) -> Mapping[str, Any]:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return value
    problems.append(f"Section '{label}' must be a mapping")
    return {}


def _sequence(value: Any, label: str, problems: list[str]) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    problems.append(f"Section '{label}' must be a list")
    return []


def _strings(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value else ()
    if not isinstance(value, (list, tuple)):
        return (str(value),)
    return tuple(str(item) for item in value if item is not None and str(item) != "")


def _positive_int(value: Any, default: int, problems: list[str]) -> int:
    if value is None:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        problems.append(f"Option 'max_slot_retries' must be an integer, got {value!r}")
        return default
    if number < 1:
        problems.append("Option 'max_slot_retries' must be at least 1")
        return default
    return number


def _parse_intent(item: Any, index: int, problems: list[str]) -> IntentDefinition:
    if not isinstance(item, Mapping):
        problems.append(f"Intent #{index} must be a mapping")
        return IntentDefinition(name="", match_hints=(), skill="")
    return IntentDefinition(
        name=_text(item.get("name")),
        match_hints=_strings(item.get("match_hints")),
        skill=_text(item.get("skill")),
        required_slots=_strings(item.get("slots")),
        description=_text(item.get("description")),
        examples=_strings(item.get("examples")),
    )


def _parse_slot(item: Any, intent_name: str, problems: list[str]) -> SlotDefinition:
    if not isinstance(item, Mapping):
        problems.append(f"Slot in intent '{intent_name}' must be a mapping")
        return SlotDefinition(name="", prompt="")
    synonyms = item.get("synonyms") or {}
    if not isinstance(synonyms, Mapping):
        problems.append(f"Slot '{item.get('name')}' synonyms must be a mapping")
        synonyms = {}
    return SlotDefinition(
        name=_text(item.get("name")),
        prompt=_text(item.get("prompt")),
        kind=_text(item.get("kind") or SlotKind.SCALAR.value),
        choices=_strings(item.get("choices")),
        validator=_text(item.get("validator")) or None,
        normalizer=_text(item.get("normalizer")) or None,
        patterns=_strings(item.get("patterns")),
        synonyms={str(k).lower(): str(v) for k, v in synonyms.items()},
        description=_text(item.get("description")),
    )
