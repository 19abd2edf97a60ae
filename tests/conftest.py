from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

import pytest

from orchestrator.domain.loader import read_builtin_domain
from orchestrator.engine.orchestrator import Orchestrator
from orchestrator.memory.store import InMemoryConversationStore
from orchestrator.nlu.patterns import PatternIntentClassifier, PatternSlotExtractor
from orchestrator.skills import SkillRegistry, register_builtin_skills


@pytest.fixture(scope="session")
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def lending_document(fixtures_dir: Path) -> dict:
    return json.loads((fixtures_dir / "lending_domain.json").read_text(encoding="utf-8"))


@pytest.fixture
def invalid_document(fixtures_dir: Path) -> dict:
    return json.loads((fixtures_dir / "invalid_domain.json").read_text(encoding="utf-8"))


@pytest.fixture
def chat_loan_payload(fixtures_dir: Path) -> dict:
    return json.loads((fixtures_dir / "chat_loan.json").read_text(encoding="utf-8"))


@pytest.fixture
def banking_document() -> dict:
    return read_builtin_domain("banking")


@pytest.fixture
def make_engine() -> Callable[..., Orchestrator]:
    """Build a pattern-backed engine, optionally with a domain already loaded."""

    def factory(document: dict | None = None, **kwargs) -> Orchestrator:
        kwargs.setdefault("store", InMemoryConversationStore())
        kwargs.setdefault("skills", register_builtin_skills(SkillRegistry()))
        kwargs.setdefault("classifier", PatternIntentClassifier())
        kwargs.setdefault("extractor", PatternSlotExtractor())
        engine = Orchestrator(**kwargs)
        if document is not None:
            runtime = engine.load_domain(document)
            assert runtime.is_valid, runtime.validation.errors
        return engine

    return factory


@pytest.fixture
def banking_engine(make_engine, banking_document) -> Orchestrator:
    return make_engine(banking_document)
