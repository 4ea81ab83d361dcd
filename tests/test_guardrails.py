"""
Guardrail Tests

Keyword intent heuristic, fail-open behaviour and field-by-field parsing of
classifier output for both the input and the output guardrail.
"""

import pytest

from conftest import FakeLLM
from lumo.agents.guardrails import InputGuardrail, OutputGuardrail, heuristic_intent
from lumo.agents.guardrails.parsing import coerce_bool, parse_json_object
from lumo.agents.runtime import RuntimeContext
from lumo.agents.types import GLOBAL_INTENTS, PROJECT_INTENTS, ConversationTurn


# ============================================================================
# Heuristic intent
# ============================================================================

@pytest.mark.parametrize("message,expected", [
    ("What's my status on this?", "status"),
    ("build me a plan", "plan"),
    ("status update please", "status"),
    ("Which TODO items are open?", "task_query"),
    ("Help me prep the agenda", "meeting_prep"),
    ("Give me a summary", "general_q"),
    ("hello there", "general_q"),
])
def test_heuristic_intent_project(message, expected):
    assert heuristic_intent(message, PROJECT_INTENTS) == expected


def test_heuristic_intent_global_skips_project_only_rules():
    assert heuristic_intent("Give me my daily digest", GLOBAL_INTENTS) == "daily_digest"
    assert heuristic_intent("prep for the meeting", GLOBAL_INTENTS) == "general_q"
    # digest rule wins over task rule because rules are tried in order
    assert heuristic_intent("overview of my tasks", GLOBAL_INTENTS) == "daily_digest"


def test_heuristic_intent_order_differs_by_scope():
    message = "what's the status of my tasks?"
    assert heuristic_intent(message, PROJECT_INTENTS) == "status"
    assert heuristic_intent(message, GLOBAL_INTENTS) == "task_query"
    assert heuristic_intent("what is the next step?", PROJECT_INTENTS) == "plan"
    assert heuristic_intent("what is the next step?", GLOBAL_INTENTS) == "general_q"


# ============================================================================
# Parsing helpers
# ============================================================================

def test_parse_json_object_handles_fences_and_chatter():
    assert parse_json_object('```json\n{"tripwire": false}\n```') == {"tripwire": False}
    assert parse_json_object('Sure! {"intent": "plan"} hope that helps') == {"intent": "plan"}

    with pytest.raises(ValueError):
        parse_json_object("no json here")
    with pytest.raises(ValueError):
        parse_json_object("[1, 2]")


def test_coerce_bool_spellings():
    assert coerce_bool(True) is True
    assert coerce_bool("yes") is True
    assert coerce_bool(1) is True
    assert coerce_bool("nope") is False
    assert coerce_bool(None) is False


# ============================================================================
# Input guardrail
# ============================================================================

@pytest.mark.asyncio
async def test_input_guardrail_without_model_passes_through(project_scope):
    guardrail = InputGuardrail(llm=None, enabled=True)

    decision = await guardrail.evaluate(project_scope, "status update please")

    assert decision.tripwire is False
    assert decision.rewritten == "status update please"
    assert decision.intent == "status"
    assert decision.message == "Guardrail disabled; passing through."


@pytest.mark.asyncio
async def test_input_guardrail_switched_off_never_calls_model(project_scope):
    llm = FakeLLM(['{"tripwire": true}'])
    guardrail = InputGuardrail(llm=llm, enabled=False)

    decision = await guardrail.evaluate(project_scope, "build me a plan")

    assert llm.calls == []
    assert decision.tripwire is False
    assert decision.intent == "plan"


@pytest.mark.asyncio
async def test_input_guardrail_fails_open_on_model_error(project_scope):
    guardrail = InputGuardrail(llm=FakeLLM([RuntimeError("timeout")]), enabled=True)

    decision = await guardrail.evaluate(project_scope, "What's my status on this?")

    assert decision.tripwire is False
    assert decision.message == "Guardrail error; continuing."
    assert decision.rewritten == "What's my status on this?"
    assert decision.intent == "status"


@pytest.mark.asyncio
async def test_input_guardrail_fails_open_on_unparseable_reply(global_scope):
    guardrail = InputGuardrail(llm=FakeLLM(["I cannot answer in JSON"]), enabled=True)

    decision = await guardrail.evaluate(global_scope, "daily digest please")

    assert decision.tripwire is False
    assert decision.message == "Guardrail error; continuing."
    assert decision.intent == "daily_digest"


@pytest.mark.asyncio
async def test_input_guardrail_parses_fields_with_defaults(project_scope):
    llm = FakeLLM(['{"tripwire": false, "message": "", "rewritten": "", "intent": "daily_digest"}'])
    guardrail = InputGuardrail(llm=llm, enabled=True)

    decision = await guardrail.evaluate(project_scope, "hi there")

    assert decision.message == "OK"
    assert decision.rewritten == "hi there", "Empty rewrite falls back to the original message"
    assert decision.intent == "general_q", "Intent outside the project enum falls back"


@pytest.mark.asyncio
async def test_input_guardrail_tripwire_default_message(project_scope):
    guardrail = InputGuardrail(llm=FakeLLM(['{"tripwire": true}']), enabled=True)

    decision = await guardrail.evaluate(project_scope, "tell me about another company")

    assert decision.tripwire is True
    assert decision.message == "Request blocked"


@pytest.mark.asyncio
async def test_input_guardrail_truncates_history(project_scope):
    llm = FakeLLM(['{"tripwire": false, "intent": "plan", "rewritten": "Plan the launch"}'])
    guardrail = InputGuardrail(llm=llm, enabled=True)
    history = [ConversationTurn(role="user", content=f"turn {i} " + "x" * 3000) for i in range(10)]

    decision = await guardrail.evaluate(project_scope, "plan it", history, time_hint="2026-03-02")

    payload = llm.calls[0][1].content
    assert '"turn 3 ' not in payload
    assert '"turn 4 ' in payload
    assert "x" * 2001 not in payload
    assert decision.rewritten == "Plan the launch"
    assert decision.intent == "plan"


# ============================================================================
# Output guardrail
# ============================================================================

def _runtime(scope) -> RuntimeContext:
    return RuntimeContext(scope=scope, latest_prompt="status update please")


@pytest.mark.asyncio
async def test_output_guardrail_disabled_returns_draft(project_scope):
    guardrail = OutputGuardrail(llm=None)

    decision = await guardrail.validate("## Summary\nAll good", _runtime(project_scope))

    assert decision.tripwire is False
    assert decision.message == "Guardrail disabled"
    assert decision.patched == "## Summary\nAll good"


@pytest.mark.asyncio
async def test_output_guardrail_error_passes_draft(project_scope):
    guardrail = OutputGuardrail(llm=FakeLLM([RuntimeError("boom")]), enabled=True)

    decision = await guardrail.validate("draft", _runtime(project_scope))

    assert decision.tripwire is False
    assert decision.message == "Guardrail error"
    assert decision.patched == "draft"


@pytest.mark.asyncio
async def test_output_guardrail_accepts_patched_reply_key(project_scope):
    llm = FakeLLM(['{"tripwire": false, "message": "fixed headings", "patched_reply": "## Summary\\nFixed"}'])
    guardrail = OutputGuardrail(llm=llm, enabled=True)

    decision = await guardrail.validate("draft", _runtime(project_scope))

    assert decision.patched == "## Summary\nFixed"
    assert decision.message == "fixed headings"


@pytest.mark.asyncio
async def test_output_guardrail_empty_patch_keeps_draft(global_scope):
    guardrail = OutputGuardrail(llm=FakeLLM(['{"tripwire": true, "message": "Ungrounded", "patched": ""}']), enabled=True)

    decision = await guardrail.validate("draft", _runtime(global_scope))

    assert decision.tripwire is True
    assert decision.message == "Ungrounded"
    assert decision.patched == "draft"
