from orchestrator.core.metrics import MetricsCollector


def test_record_turn_counts_by_dimension():
    metrics = MetricsCollector()

    metrics.record_turn("loan_inquiry", "awaiting_slots", "banking")
    metrics.record_turn("loan_inquiry", "executed", "banking")
    metrics.record_turn("greet", "executed", "appointments")

    snapshot = metrics.snapshot()
    assert snapshot.total_turns == 3
    assert snapshot.intents == {"loan_inquiry": 2, "greet": 1}
    assert snapshot.outcomes == {"awaiting_slots": 1, "executed": 2}
    assert snapshot.domains == {"banking": 2, "appointments": 1}
