"""Loading, storing and switching domain configurations."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

import yaml

from .schema import DomainConfig, RuntimeConfig
from .validator import ConfigValidator

logger = logging.getLogger("orchestrator.domain")

BUILTIN_DOMAINS_DIR = Path(__file__).resolve().parent.parent / "domains"


class DomainConfigLoader:
    """Keeps every loaded domain by name and tracks the active one.

    A config is stored even when invalid so its validation result can be
    inspected, but only a valid config ever becomes current.
    """

    def __init__(self, validator: ConfigValidator | None = None) -> None:
        self._validator = validator or ConfigValidator()
        self._configs: dict[str, RuntimeConfig] = {}
        self._current: RuntimeConfig | None = None

    @property
    def current(self) -> RuntimeConfig | None:
        return self._current

    def load(self, config: DomainConfig | Mapping[str, Any]) -> RuntimeConfig:
        if not isinstance(config, DomainConfig):
            config = DomainConfig.from_document(config)

        logger.info("Loading domain config %s", config.name or "<unnamed>")
        result = self._validator.validate(config)
        runtime = RuntimeConfig(config=config, validation=result)
        self._configs[config.name] = runtime

        if result.is_valid:
            self._current = runtime
            logger.info("Activated domain %s v%s", config.name, config.version)
            for warning in result.warnings:
                logger.warning("Domain %s: %s", config.name, warning)
        else:
            logger.error("Invalid domain config %s: %s", config.name, result.errors)
        return runtime

    def switch_to(self, name: str) -> bool:
        runtime = self._configs.get(name)
        if runtime is None or not runtime.is_valid:
            logger.error("Cannot switch to domain %s (not found or invalid)", name)
            return False
        self._current = runtime
        logger.info("Switched to domain %s", name)
        return True

    def get(self, name: str) -> RuntimeConfig | None:
        return self._configs.get(name)

    def loaded_domains(self) -> list[str]:
        return list(self._configs)


def read_domain_document(path: Path | str) -> dict[str, Any]:
    """Parse a JSON or YAML domain document from disk."""

    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        document = json.loads(text)
    else:
        document = yaml.safe_load(text)
    if not isinstance(document, dict):
        raise ValueError(f"{path} does not contain a domain document mapping")
    return document


def builtin_domain_names() -> list[str]:
    return sorted(path.stem for path in BUILTIN_DOMAINS_DIR.glob("*.yaml"))


def read_builtin_domain(name: str) -> dict[str, Any]:
    path = BUILTIN_DOMAINS_DIR / f"{name}.yaml"
    if not path.is_file():
        raise FileNotFoundError(f"No built-in domain named '{name}'")
    return read_domain_document(path)
