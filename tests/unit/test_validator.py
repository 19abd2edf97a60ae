import copy

from orchestrator.domain.schema import DomainConfig
from orchestrator.domain.validator import ConfigValidator
from orchestrator.nlu.values import default_value_registry
from orchestrator.skills import SkillRegistry, register_builtin_skills


def _validator() -> ConfigValidator:
    return ConfigValidator(skills=register_builtin_skills(SkillRegistry()), values=default_value_registry())


def test_builtin_banking_domain_is_valid(banking_document):
    result = _validator().validate(DomainConfig.from_document(banking_document))

    assert result.is_valid, result.errors
    assert result.errors == []


def test_missing_skill_binding_names_the_handler(invalid_document):
    result = _validator().validate(DomainConfig.from_document(invalid_document))

    assert result.is_valid is False
    assert "Intent 'refund' references non-existent skill 'process_refund'" in result.errors


def test_missing_system_intents_are_warnings(invalid_document):
    result = _validator().validate(DomainConfig.from_document(invalid_document))

    assert "System intent 'greet' is recommended" in result.warnings
    assert "System intent 'unknown' is recommended" in result.warnings
    assert not any("System intent" in error for error in result.errors)


def test_metadata_and_intents_required():
    result = _validator().validate(DomainConfig.from_document({"metadata": {}}))

    assert "Domain name is required" in result.errors
    assert "Domain version is required" in result.errors
    assert "At least one intent is required" in result.errors


def test_non_mapping_document_is_reported():
    result = _validator().validate(DomainConfig.from_document(["not", "a", "mapping"]))

    assert result.is_valid is False
    assert "Domain document must be a mapping" in result.errors


def test_intent_and_slot_errors(lending_document):
    document = copy.deepcopy(lending_document)
    document["intents"].append(dict(document["intents"][0]))
    document["intents"][1]["match_hints"] = []
    purpose = document["slots"]["loan_inquiry"][1]
    purpose["choices"] = []
    document["slots"]["loan_inquiry"].append({"name": "amount", "prompt": "Again?", "kind": "fuzzy"})
    document["slots"]["orphan"] = [{"name": "x", "prompt": "X?"}]

    result = _validator().validate(DomainConfig.from_document(document))

    assert "Duplicate intent name: greet" in result.errors
    assert "Intent loan_inquiry must have at least one match hint" in result.errors
    assert "Enumerated slot 'purpose' must have choices" in result.errors
    assert "Duplicate slot name 'amount' in intent 'loan_inquiry'" in result.errors
    assert "Slot 'amount' has invalid kind: fuzzy" in result.errors
    assert "Slot group 'orphan' has no corresponding intent" in result.warnings


def test_required_slot_must_be_defined(lending_document):
    document = copy.deepcopy(lending_document)
    document["intents"][1]["slots"] = ["amount", "purpose", "income"]

    result = _validator().validate(DomainConfig.from_document(document))

    assert "Intent 'loan_inquiry' requires undefined slot 'income'" in result.errors


def test_unregistered_handler_and_unknown_value_hooks(lending_document):
    document = copy.deepcopy(lending_document)
    document["skills"]["loan_inquiry"] = "lending.missing_handler"
    document["slots"]["loan_inquiry"][0]["validator"] = "no_such_validator"

    result = _validator().validate(DomainConfig.from_document(document))

    assert "Skill 'loan_inquiry' references unregistered handler 'lending.missing_handler'" in result.errors
    assert "Slot 'amount' references unknown validator 'no_such_validator'" in result.errors


def test_synonym_must_target_a_choice(lending_document):
    document = copy.deepcopy(lending_document)
    document["slots"]["loan_inquiry"][1]["synonyms"]["boat"] = "Boat purchase"

    result = _validator().validate(DomainConfig.from_document(document))

    assert "Slot 'purpose' synonym 'boat' maps to unknown choice 'Boat purchase'" in result.errors


def test_invalid_regex_hint_is_an_error(lending_document):
    document = copy.deepcopy(lending_document)
    document["intents"][0]["match_hints"] = ["(unclosed"]

    result = _validator().validate(DomainConfig.from_document(document))

    assert "Intent greet has an invalid match hint: '(unclosed'" in result.errors


def test_prompt_warnings(lending_document):
    document = copy.deepcopy(lending_document)
    del document["prompt_templates"]

    result = _validator().validate(DomainConfig.from_document(document))

    assert result.is_valid
    assert "Intent detection prompt is recommended for hosted-model classification" in result.warnings
    assert "Intent 'loan_inquiry' has slots but no slot extraction prompt" in result.warnings
