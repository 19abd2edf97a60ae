"""Named slot value validators and normalizers.

Domain documents reference these by name; the host process owns the
registry so configs stay serialisable.
"""

from __future__ import annotations

import re
from typing import Callable, Union

ValidatorResult = Union[bool, str]
Validator = Callable[[str], ValidatorResult]
Normalizer = Callable[[str], str]

_APPOINTMENT_ID = re.compile(r"^APT-\d{6}$", re.IGNORECASE)


def _positive_amount(value: str) -> ValidatorResult:
    try:
        amount = float(value.replace(",", "").replace("$", ""))
    except ValueError:
        return "Please enter a valid positive amount"
    return amount > 0 or "Please enter a valid positive amount"


def _non_empty(value: str) -> ValidatorResult:
    return bool(value.strip()) or "Please enter a value"


def _appointment_id(value: str) -> ValidatorResult:
    if _APPOINTMENT_ID.match(value.strip()):
        return True
    return "Please enter a valid confirmation ID (format: APT-123456)"


def _severity_scale(value: str) -> ValidatorResult:
    try:
        number = int(value.strip())
    except ValueError:
        return "Please enter a number between 1 and 10"
    return 1 <= number <= 10 or "Please enter a number between 1 and 10"


def _min_length(length: int, message: str) -> Validator:
    def check(value: str) -> ValidatorResult:
        return len(value.strip()) >= length or message

    return check


def _amount(value: str) -> str:
    cleaned = value.replace(",", "").replace("$", "").strip()
    if cleaned.endswith(".00"):
        cleaned = cleaned[:-3]
    return cleaned


def _capitalize(value: str) -> str:
    value = value.strip()
    return value[:1].upper() + value[1:]


class ValueRegistry:
    """Lookup table of validators and normalizers keyed by name."""

    def __init__(self) -> None:
        self._validators: dict[str, Validator] = {}
        self._normalizers: dict[str, Normalizer] = {}

    def register_validator(self, name: str, func: Validator) -> None:
        self._validators[name] = func

    def register_normalizer(self, name: str, func: Normalizer) -> None:
        self._normalizers[name] = func

    def has_validator(self, name: str) -> bool:
        return name in self._validators

    def has_normalizer(self, name: str) -> bool:
        return name in self._normalizers

    def validate(self, name: str, value: str) -> str | None:
        """Return None when ``value`` passes, else a human-readable reason.

        A validator that raises counts as a rejection.
        """

        func = self._validators.get(name)
        if func is None:
            return f"Unknown validator '{name}'"
        try:
            result = func(value)
        except Exception as exc:  # noqa: BLE001
            return f"Validator '{name}' failed: {exc}"
        if result is True:
            return None
        if isinstance(result, str):
            return result
        return f"Value rejected by '{name}'"

    def normalize(self, name: str | None, value: str) -> str:
        if not name:
            return value
        func = self._normalizers.get(name)
        return func(value) if func else value


def default_value_registry() -> ValueRegistry:
    """Return a registry populated with the built-in validators and normalizers."""

    registry = ValueRegistry()
    registry.register_validator("positive_amount", _positive_amount)
    registry.register_validator("non_empty", _non_empty)
    registry.register_validator("appointment_id", _appointment_id)
    registry.register_validator("severity_scale", _severity_scale)
    registry.register_validator(
        "symptom_description",
        _min_length(10, "Please provide more detailed symptom description (at least 10 characters)"),
    )
    registry.register_validator(
        "medication_name",
        _min_length(3, "Please enter the medication name (at least 3 characters)"),
    )
    registry.register_normalizer("amount", _amount)
    registry.register_normalizer("upper", lambda value: value.strip().upper())
    registry.register_normalizer("lower", lambda value: value.strip().lower())
    registry.register_normalizer("capitalize", _capitalize)
    return registry
