import json

import httpx

from orchestrator.bootstrap import build_capabilities, build_orchestrator, load_startup_domains
from orchestrator.core.config import Settings
from orchestrator.nlu.llm import LLMIntentClassifier
from orchestrator.nlu.patterns import PatternIntentClassifier


def test_pattern_backend_is_default():
    classifier, extractor = build_capabilities(Settings(_env_file=None))

    assert isinstance(classifier, PatternIntentClassifier)
    assert extractor.name == "pattern-extractor"


def test_llm_backend_requires_key():
    classifier, _ = build_capabilities(Settings(_env_file=None, nlu_backend="llm", openrouter_api_key=None))
    assert isinstance(classifier, PatternIntentClassifier)

    settings = Settings(_env_file=None, nlu_backend="llm", openrouter_api_key="k")
    classifier, extractor = build_capabilities(settings, transport=httpx.MockTransport(lambda r: httpx.Response(500)))
    assert isinstance(classifier, LLMIntentClassifier)
    assert extractor.name == "llm-extractor"


def test_startup_loads_builtins_and_activates_default():
    settings = Settings(_env_file=None, default_domain="appointments")
    engine = build_orchestrator(settings)

    failed = load_startup_domains(engine, settings)

    assert failed == []
    assert sorted(engine.available_domains()) == ["appointments", "banking", "healthcare"]
    assert engine.current_domain()["name"] == "appointments"


def test_startup_reports_bad_documents(tmp_path, invalid_document):
    broken = tmp_path / "broken.json"
    broken.write_text(json.dumps(invalid_document), encoding="utf-8")
    unreadable = tmp_path / "missing.yaml"
    settings = Settings(
        _env_file=None,
        preload_domains=["banking", "travel"],
        domain_paths=[broken, unreadable],
    )
    engine = build_orchestrator(settings)

    failed = load_startup_domains(engine, settings)

    assert failed == ["travel", "broken", str(unreadable)]
    assert engine.current_domain()["name"] == "banking"


def test_startup_without_default_domain():
    settings = Settings(_env_file=None, default_domain=None, preload_domains=[])
    engine = build_orchestrator(settings)

    assert load_startup_domains(engine, settings) == []
    assert engine.is_ready() is False
