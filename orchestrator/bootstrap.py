"""Wiring of the engine from process settings."""

from __future__ import annotations

import logging

import httpx
import yaml

from orchestrator.core.config import Settings
from orchestrator.domain.loader import read_builtin_domain, read_domain_document
from orchestrator.engine.orchestrator import Orchestrator
from orchestrator.memory.store import InMemoryConversationStore
from orchestrator.nlu.base import IntentClassifier, SlotExtractor
from orchestrator.nlu.llm import LLMIntentClassifier, LLMSlotExtractor, OpenRouterChat
from orchestrator.nlu.patterns import PatternIntentClassifier, PatternSlotExtractor
from orchestrator.skills import SkillRegistry, register_builtin_skills

logger = logging.getLogger("orchestrator.app")


def build_capabilities(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> tuple[IntentClassifier, SlotExtractor]:
    if settings.nlu_backend == "llm":
        if settings.llm_enabled:
            chat = OpenRouterChat(
                settings.openrouter_api_key or "",
                model=settings.openrouter_model,
                base_url=settings.openrouter_base_url,
                referer=settings.openrouter_referer,
                title=settings.openrouter_title,
                temperature=settings.default_temperature,
                max_tokens=settings.default_max_tokens,
                timeout=settings.capability_timeout_seconds,
                min_interval=settings.openrouter_rate_limit_per_sec,
                transport=transport,
            )
            return LLMIntentClassifier(chat), LLMSlotExtractor(chat)
        logger.warning("nlu_backend=llm but no OpenRouter key configured; using pattern matching")
    return PatternIntentClassifier(), PatternSlotExtractor()


def build_orchestrator(
    settings: Settings,
    *,
    store: InMemoryConversationStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Orchestrator:
    classifier, extractor = build_capabilities(settings, transport)
    return Orchestrator(
        store=store or InMemoryConversationStore(),
        skills=register_builtin_skills(SkillRegistry()),
        classifier=classifier,
        extractor=extractor,
        capability_timeout=settings.capability_timeout_seconds,
    )


def load_startup_domains(engine: Orchestrator, settings: Settings) -> list[str]:
    """Load built-in and file-based domains, then activate the default one.

    Returns the names of domains that failed validation or could not be read.
    """

    failed: list[str] = []
    for name in settings.preload_domains:
        try:
            runtime = engine.load_domain(read_builtin_domain(name))
        except (OSError, ValueError, yaml.YAMLError) as exc:
            logger.error("Could not read built-in domain %s: %s", name, exc)
            failed.append(name)
            continue
        if not runtime.is_valid:
            failed.append(name)

    for path in settings.domain_paths:
        try:
            runtime = engine.load_domain(read_domain_document(path))
        except (OSError, ValueError, yaml.YAMLError) as exc:
            logger.error("Could not read domain document %s: %s", path, exc)
            failed.append(str(path))
            continue
        if not runtime.is_valid:
            failed.append(runtime.name or str(path))

    if settings.default_domain:
        if settings.default_domain not in engine.available_domains():
            try:
                engine.load_domain(read_builtin_domain(settings.default_domain))
            except (OSError, ValueError, yaml.YAMLError) as exc:
                logger.error("Default domain %s unavailable: %s", settings.default_domain, exc)
        if not engine.switch_domain(settings.default_domain):
            logger.error("Default domain %s could not be activated", settings.default_domain)
    return failed
