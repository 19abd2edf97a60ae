from orchestrator.nlu.values import default_value_registry


def test_positive_amount_validator():
    values = default_value_registry()

    assert values.validate("positive_amount", "50000") is None
    assert values.validate("positive_amount", "$1,200") is None
    assert values.validate("positive_amount", "0") == "Please enter a valid positive amount"
    assert values.validate("positive_amount", "lots") == "Please enter a valid positive amount"


def test_appointment_id_validator():
    values = default_value_registry()

    assert values.validate("appointment_id", "APT-123456") is None
    assert values.validate("appointment_id", "APT-12") is not None


def test_healthcare_validators():
    values = default_value_registry()

    assert values.validate("severity_scale", "7") is None
    assert values.validate("severity_scale", "11") is not None
    assert values.validate("symptom_description", "headache") is not None
    assert values.validate("symptom_description", "persistent headache") is None
    assert values.validate("medication_name", "Lisinopril") is None


def test_unknown_or_broken_validator_rejects():
    values = default_value_registry()

    def explode(value):
        raise RuntimeError("boom")

    values.register_validator("explode", explode)

    assert values.validate("missing", "x") == "Unknown validator 'missing'"
    assert "boom" in values.validate("explode", "x")


def test_normalizers():
    values = default_value_registry()

    assert values.normalize("amount", "$50,000.00") == "50000"
    assert values.normalize("upper", " apt-123456 ") == "APT-123456"
    assert values.normalize("capitalize", "tomorrow") == "Tomorrow"
    assert values.normalize(None, "as is") == "as is"
    assert values.normalize("not-registered", "as is") == "as is"
