from orchestrator.memory.inference import PreferredDaysRule, TimeOfDayRule, default_rules, infer_preferences
from orchestrator.memory.models import ConversationTurn


def _turn(slots):
    return ConversationTurn(
        user_input="",
        detected_intent="schedule_appointment",
        extracted_slots=slots,
        response="",
        domain="appointments",
    )


def test_time_of_day_rule_detects_keywords():
    rule = TimeOfDayRule()

    assert rule.observe(_turn({"time": "2pm"}), {}) == {"preferred_time_of_day": "afternoon"}
    assert rule.observe(_turn({"time": "in the evening"}), {}) == {"preferred_time_of_day": "evening"}
    assert rule.observe(_turn({"time": "9:30 am"}), {}) == {"preferred_time_of_day": "morning"}
    assert rule.observe(_turn({"time": "whenever"}), {}) == {}
    assert rule.observe(_turn({"date": "Monday"}), {}) == {}


def test_time_of_day_backfill_only_fills_gaps():
    rule = TimeOfDayRule()
    preferences = {"preferred_time_of_day": "morning"}

    assert rule.backfill(["date", "time"], {}, preferences) == {"time": "morning"}
    assert rule.backfill(["date", "time"], {"time": "3pm"}, preferences) == {}
    assert rule.backfill(["amount"], {}, preferences) == {}


def test_preferred_days_accumulate_without_duplicates():
    rule = PreferredDaysRule()

    first = rule.observe(_turn({"date": "next Tuesday"}), {})
    second = rule.observe(_turn({"date": "tuesday or thursday"}), first)

    assert first == {"preferred_days": ["tuesday"]}
    assert second == {"preferred_days": ["tuesday", "thursday"]}
    assert rule.backfill(["date"], {}, second) == {"date": "tuesday"}


def test_infer_preferences_combines_rules():
    updates = infer_preferences(default_rules(), _turn({"date": "Friday", "time": "10am"}), {})

    assert updates == {"preferred_time_of_day": "morning", "preferred_days": ["friday"]}
