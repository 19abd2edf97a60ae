"""Domain configuration validation."""

from __future__ import annotations

import re

from orchestrator.nlu.values import ValueRegistry
from orchestrator.skills.registry import SkillRegistry

from .schema import DomainConfig, IntentDefinition, SlotKind, ValidationResult

SYSTEM_INTENTS = ("greet", "exit", "unknown")
_SLOT_KINDS = {kind.value for kind in SlotKind}


class ConfigValidator:
    """Checks a domain config before it may become active.

    ``validate`` never raises; every problem is reported in the result.
    Skill bindings are resolved against ``skills`` and slot validators /
    normalizers against ``values`` when those registries are provided.
    """

    def __init__(
        self,
        skills: SkillRegistry | None = None,
        values: ValueRegistry | None = None,
    ) -> None:
        self._skills = skills
        self._values = values

    def validate(self, config: DomainConfig) -> ValidationResult:
        errors: list[str] = list(config.parse_errors)
        warnings: list[str] = []

        if not config.name:
            errors.append("Domain name is required")
        if not config.version:
            errors.append("Domain version is required")
        if not config.description:
            warnings.append("Domain description is recommended")

        if not config.intents:
            errors.append("At least one intent is required")
        else:
            self._validate_intents(config, errors, warnings)

        self._validate_slots(config, errors, warnings)
        self._validate_prompts(config, warnings)
        self._validate_skills(config, errors)

        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

    def _validate_intents(self, config: DomainConfig, errors: list[str], warnings: list[str]) -> None:
        seen: set[str] = set()
        for intent in config.intents:
            label = intent.name or "<unnamed>"
            if not intent.name:
                errors.append("Intent name is required")
            elif intent.name in seen:
                errors.append(f"Duplicate intent name: {intent.name}")
            seen.add(intent.name)

            if not intent.match_hints:
                errors.append(f"Intent {label} must have at least one match hint")
            for hint in intent.match_hints:
                if not _compiles(hint):
                    errors.append(f"Intent {label} has an invalid match hint: {hint!r}")
            if not intent.description:
                warnings.append(f"Intent {label} should have a description")
            if not intent.skill:
                errors.append(f"Intent {label} must specify a skill handler")

        for system_intent in SYSTEM_INTENTS:
            if system_intent not in seen:
                warnings.append(f"System intent '{system_intent}' is recommended")

        fallback = config.options.fallback_intent
        if fallback not in seen:
            warnings.append(f"Fallback intent '{fallback}' is not defined by the domain")

    def _validate_slots(self, config: DomainConfig, errors: list[str], warnings: list[str]) -> None:
        intent_names = set(config.intent_names())

        for intent_name, group in config.slots.items():
            if intent_name not in intent_names:
                warnings.append(f"Slot group '{intent_name}' has no corresponding intent")

            slot_names: set[str] = set()
            for slot in group:
                label = slot.name or "<unnamed>"
                if not slot.name:
                    errors.append(f"Slot in intent '{intent_name}' is missing name")
                elif slot.name in slot_names:
                    errors.append(f"Duplicate slot name '{slot.name}' in intent '{intent_name}'")
                slot_names.add(slot.name)

                if not slot.prompt:
                    errors.append(f"Slot '{label}' in intent '{intent_name}' is missing prompt")
                if slot.kind not in _SLOT_KINDS:
                    errors.append(f"Slot '{label}' has invalid kind: {slot.kind}")
                if slot.is_enumerated and not slot.choices:
                    errors.append(f"Enumerated slot '{label}' must have choices")
                for keyword, target in slot.synonyms.items():
                    if slot.choices and target not in slot.choices:
                        errors.append(f"Slot '{label}' synonym '{keyword}' maps to unknown choice '{target}'")
                for pattern in slot.patterns:
                    if not _compiles(pattern):
                        errors.append(f"Slot '{label}' has an invalid pattern: {pattern!r}")
                if self._values is not None:
                    if slot.validator and not self._values.has_validator(slot.validator):
                        errors.append(f"Slot '{label}' references unknown validator '{slot.validator}'")
                    if slot.normalizer and not self._values.has_normalizer(slot.normalizer):
                        errors.append(f"Slot '{label}' references unknown normalizer '{slot.normalizer}'")

        for intent in config.intents:
            self._validate_required_slots(config, intent, errors)

    @staticmethod
    def _validate_required_slots(config: DomainConfig, intent: IntentDefinition, errors: list[str]) -> None:
        if not intent.required_slots:
            return
        if intent.name not in config.slots:
            errors.append(f"Intent '{intent.name}' declares slots but has no slot definitions")
            return
        defined = {slot.name for slot in config.slots[intent.name]}
        for slot_name in intent.required_slots:
            if slot_name not in defined:
                errors.append(f"Intent '{intent.name}' requires undefined slot '{slot_name}'")

    @staticmethod
    def _validate_prompts(config: DomainConfig, warnings: list[str]) -> None:
        if not config.intent_detection_prompt:
            warnings.append("Intent detection prompt is recommended for hosted-model classification")
        for intent in config.intents:
            if intent.required_slots and not config.slot_extraction_prompts.get(intent.name):
                warnings.append(f"Intent '{intent.name}' has slots but no slot extraction prompt")

    def _validate_skills(self, config: DomainConfig, errors: list[str]) -> None:
        if not config.skills:
            errors.append("At least one skill binding is required")

        for intent in config.intents:
            if intent.skill and intent.skill not in config.skills:
                errors.append(f"Intent '{intent.name}' references non-existent skill '{intent.skill}'")

        if self._skills is None:
            return
        for skill_name, handler_name in config.skills.items():
            if not handler_name:
                errors.append(f"Skill '{skill_name}' has no handler reference")
            elif handler_name not in self._skills:
                errors.append(f"Skill '{skill_name}' references unregistered handler '{handler_name}'")


def _compiles(pattern: str) -> bool:
    try:
        re.compile(pattern)
    except re.error:
        return False
    return True
