import pytest

from orchestrator.memory.models import (
    FLOW_LIMIT,
    SESSION_START,
    SLOT_COLLECTION_ABANDONED,
    SLOT_COLLECTION_COMPLETE,
    SLOT_COLLECTION_START,
    ConversationTurn,
)


def _turn(intent: str, slots: dict | None = None, domain: str = "banking") -> ConversationTurn:
    return ConversationTurn(
        user_input=f"say {intent}",
        detected_intent=intent,
        extracted_slots=slots or {},
        response="ok",
        domain=domain,
    )


def test_create_session_seeds_context(memory_store):
    session = memory_store.create_session("banking", user_id="u-1")

    assert session.session_id.startswith("conv_")
    assert session.user_id == "u-1"
    assert session.turns == []
    assert session.preferences == {}
    assert session.context.conversation_flow == [SESSION_START]
    assert session.context.current_domain == "banking"


def test_session_ids_are_unique(memory_store):
    ids = {memory_store.create_session("banking").session_id for _ in range(50)}

    assert len(ids) == 50


def test_add_turn_updates_context(memory_store):
    session_id = memory_store.create_session("banking").session_id

    memory_store.add_turn(session_id, _turn("greet"))
    memory_store.add_turn(session_id, _turn("loan_inquiry", {"amount": "500", "purpose": ""}))

    context = memory_store.get_context(session_id)
    assert context.last_intent == "loan_inquiry"
    assert context.current_topic == "loan_inquiry"
    assert context.entity_mentions == {"amount": "500"}
    assert context.conversation_flow == [SESSION_START, "greet", "loan_inquiry"]

    memory_store.add_turn(session_id, _turn("exit"))
    context = memory_store.get_context(session_id)
    assert context.last_intent == "exit"
    assert context.current_topic == "loan_inquiry"


def test_conversation_flow_is_bounded(memory_store):
    session_id = memory_store.create_session("banking").session_id

    for index in range(25):
        memory_store.add_turn(session_id, _turn(f"intent_{index}"))

    flow = memory_store.get_context(session_id).conversation_flow
    assert len(flow) == FLOW_LIMIT
    assert flow[-1] == "intent_24"
    assert len(memory_store.get_session(session_id).turns) == 25


def test_unknown_session_reads_are_empty(memory_store):
    memory_store.add_turn("missing", _turn("greet"))

    assert memory_store.get_session("missing") is None
    assert memory_store.get_context("missing") is None
    assert memory_store.get_preferences("missing") is None
    assert memory_store.get_recent_turns("missing") == []
    assert memory_store.get_slot_collection_state("missing") is None
    assert memory_store.get_collected_slots("missing") == {}
    assert memory_store.get_conversation_summary("missing") == ""
    assert memory_store.is_waiting_for_slot("missing", "amount") is False
    assert memory_store.update_slot_collection("missing", {"amount": "1"}) is None
    assert memory_store.delete_session("missing") is False


def test_reads_return_copies(memory_store):
    session_id = memory_store.create_session("banking").session_id
    memory_store.add_turn(session_id, _turn("loan_inquiry", {"amount": "500"}))

    first = memory_store.get_context(session_id)
    first.entity_mentions["amount"] = "tampered"
    second = memory_store.get_context(session_id)

    assert second.entity_mentions == {"amount": "500"}
    assert memory_store.get_context(session_id) == second


def test_recent_turns_are_limited(memory_store):
    session_id = memory_store.create_session("banking").session_id
    for intent in ("greet", "balance_check", "loan_inquiry", "exit"):
        memory_store.add_turn(session_id, _turn(intent))

    recent = memory_store.get_recent_turns(session_id, count=2)

    assert [turn.detected_intent for turn in recent] == ["loan_inquiry", "exit"]


def test_slot_collection_tracks_missing_slots(memory_store):
    session_id = memory_store.create_session("banking").session_id

    assert memory_store.start_slot_collection(session_id, "loan_inquiry", ["amount", "purpose"])
    assert memory_store.is_waiting_for_slot(session_id, "amount")

    state = memory_store.update_slot_collection(session_id, {"amount": "", "purpose": None})
    assert state.collected_slots == {}
    assert state.missing_slots == ["amount", "purpose"]

    state = memory_store.update_slot_collection(session_id, {"amount": "30000", "extra": "kept"})
    assert state.collected_slots == {"amount": "30000", "extra": "kept"}
    assert state.missing_slots == ["purpose"]
    assert memory_store.get_collected_slots(session_id) == memory_store.get_collected_slots(session_id)
    assert not memory_store.is_waiting_for_slot(session_id, "amount")


def test_only_one_collection_at_a_time(memory_store):
    session_id = memory_store.create_session("banking").session_id

    assert memory_store.start_slot_collection(session_id, "loan_inquiry", ["amount"])
    assert not memory_store.start_slot_collection(session_id, "balance_check", ["account_type"])
    assert memory_store.get_slot_collection_state(session_id).target_intent == "loan_inquiry"


def test_complete_and_abandon_push_markers(memory_store):
    session_id = memory_store.create_session("banking").session_id

    memory_store.start_slot_collection(session_id, "loan_inquiry", ["amount"])
    memory_store.complete_slot_collection(session_id)
    memory_store.start_slot_collection(session_id, "balance_check", ["account_type"])
    memory_store.abandon_slot_collection(session_id)

    context = memory_store.get_context(session_id)
    assert context.slot_collection is None
    assert context.conversation_flow == [
        SESSION_START,
        SLOT_COLLECTION_START,
        SLOT_COLLECTION_COMPLETE,
        SLOT_COLLECTION_START,
        SLOT_COLLECTION_ABANDONED,
    ]


def test_record_prompt_counts_per_slot(memory_store):
    session_id = memory_store.create_session("banking").session_id
    memory_store.start_slot_collection(session_id, "loan_inquiry", ["amount", "purpose"], max_attempts=2)

    assert memory_store.record_prompt(session_id, "amount") == 1
    assert memory_store.record_prompt(session_id, "amount") == 2
    assert memory_store.record_prompt(session_id, "purpose") == 1

    state = memory_store.get_slot_collection_state(session_id)
    assert state.attempts_per_slot == {"amount": 2, "purpose": 1}
    assert state.last_prompted_slot == "purpose"
    assert state.max_attempts == 2


def test_preferences_are_inferred_from_turns(memory_store):
    session_id = memory_store.create_session("appointments").session_id

    memory_store.add_turn(session_id, _turn("schedule_appointment", {"time": "10am", "date": "Monday"}))
    memory_store.add_turn(session_id, _turn("schedule_appointment", {"date": "Friday or monday"}))

    preferences = memory_store.get_preferences(session_id)
    assert preferences["preferred_time_of_day"] == "morning"
    assert preferences["preferred_days"] == ["monday", "friday"]


def test_update_context_rejects_unknown_fields(memory_store):
    session_id = memory_store.create_session("banking").session_id

    memory_store.update_context(session_id, {"current_topic": "loans"})
    assert memory_store.get_context(session_id).current_topic == "loans"

    with pytest.raises(ValueError, match="mood"):
        memory_store.update_context(session_id, {"mood": "happy"})


def test_summary_mentions_recent_intents(memory_store):
    session_id = memory_store.create_session("banking").session_id
    memory_store.add_turn(session_id, _turn("greet"))
    memory_store.add_turn(session_id, _turn("loan_inquiry"))

    summary = memory_store.get_conversation_summary(session_id)

    assert "greet → loan_inquiry" in summary
    assert "Current topic: loan_inquiry" in summary


def test_find_recent_mentions(memory_store):
    session_id = memory_store.create_session("banking").session_id
    memory_store.add_turn(session_id, _turn("balance_check", {"account_type": "Savings account"}))
    memory_store.add_turn(session_id, _turn("loan_inquiry", {"amount": "100"}))

    mentions = memory_store.find_recent_mentions(session_id, "account")

    assert [mention["value"] for mention in mentions] == ["Savings account"]


def test_cleanup_removes_only_idle_sessions(memory_store, clock):
    stale = memory_store.create_session("banking").session_id
    clock.advance(minutes=119)
    fresh = memory_store.create_session("banking").session_id
    clock.advance(minutes=1)

    removed = memory_store.cleanup_old_sessions(60)

    assert removed == 1
    assert memory_store.get_session(stale) is None
    assert memory_store.get_session(fresh) is not None


def test_cleanup_skips_sessions_in_flight(memory_store, clock):
    session_id = memory_store.create_session("banking").session_id
    clock.advance(hours=2)

    with memory_store.in_flight(session_id):
        assert memory_store.cleanup_old_sessions(60) == 0

    assert memory_store.cleanup_old_sessions(60) == 1
    assert memory_store.active_session_count() == 0


def test_delete_during_turn_is_deferred(memory_store):
    session_id = memory_store.create_session("banking").session_id

    with memory_store.in_flight(session_id):
        memory_store.start_slot_collection(session_id, "loan_inquiry", ["amount"])
        assert memory_store.delete_session(session_id) is True
        assert memory_store.get_session(session_id) is not None
        memory_store.add_turn(session_id, _turn("loan_inquiry"))
        assert memory_store.is_waiting_for_slot(session_id, "amount")

    assert memory_store.get_session(session_id) is None
    assert memory_store.delete_session(session_id) is False


def test_update_preferences_merges_with_inferred_values(memory_store):
    session_id = memory_store.create_session("appointments").session_id
    memory_store.add_turn(session_id, _turn("schedule_appointment", {"time": "10am", "date": "Monday"}))

    memory_store.update_preferences(session_id, {"preferred_time_of_day": "evening", "language": "en"})

    preferences = memory_store.get_preferences(session_id)
    assert preferences == {
        "preferred_time_of_day": "evening",
        "preferred_days": ["monday"],
        "language": "en",
    }

    memory_store.add_turn(session_id, _turn("schedule_appointment", {"date": "Friday"}))
    memory_store.update_preferences(session_id, {"language": "fr"})

    preferences = memory_store.get_preferences(session_id)
    assert preferences["preferred_days"] == ["monday", "friday"]
    assert preferences["preferred_time_of_day"] == "evening"
    assert preferences["language"] == "fr"
    assert memory_store.update_preferences("missing", {"language": "en"}) is None
