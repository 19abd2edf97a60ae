import asyncio

import pytest

from orchestrator.domain.schema import DomainConfig
from orchestrator.nlu.patterns import PatternIntentClassifier, PatternSlotExtractor


@pytest.fixture
def banking_config(banking_document):
    return DomainConfig.from_document(banking_document)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Hello there", "greet"),
        ("I need a loan", "loan_inquiry"),
        ("What's my balance?", "balance_check"),
        ("Show my recent transactions", "transaction_history"),
        ("Thanks, bye", "exit"),
        ("asdf qwerty", "unknown"),
        ("", "unknown"),
    ],
)
def test_classifier_uses_match_hints(banking_config, text, expected):
    classifier = PatternIntentClassifier()
    classifier.configure(banking_config)

    assert asyncio.run(classifier.classify(text)) == expected


def test_unbound_classifier_raises():
    with pytest.raises(RuntimeError):
        asyncio.run(PatternIntentClassifier().classify("hello"))


def test_extractor_reads_patterns_and_choices(banking_config):
    extractor = PatternSlotExtractor()
    extractor.configure(banking_config)

    fields = asyncio.run(extractor.extract("loan_inquiry", "I need a $50000 loan for a car purchase"))

    assert fields == {"amount": "50000", "purpose": "Car purchase"}


def test_extractor_maps_synonyms(banking_config):
    extractor = PatternSlotExtractor()
    extractor.configure(banking_config)

    assert asyncio.run(extractor.extract("loan_inquiry", "for my new house")) == {"purpose": "Home purchase"}
    assert asyncio.run(extractor.extract("balance_check", "check my savings please")) == {
        "account_type": "Savings account"
    }


def test_extractor_uses_named_value_group():
    config = DomainConfig.from_document(
        {
            "metadata": {"name": "t", "version": "1"},
            "intents": [{"name": "cancel", "match_hints": ["cancel"], "skill": "cancel", "slots": ["code"]}],
            "slots": {"cancel": [{"name": "code", "prompt": "Code?", "patterns": [r"code (?P<value>[a-z]+\d+)"]}]},
        }
    )
    extractor = PatternSlotExtractor()
    extractor.configure(config)

    assert asyncio.run(extractor.extract("cancel", "cancel code abc123 please")) == {"code": "abc123"}
    assert asyncio.run(extractor.extract("cancel", "   ")) == {}
