"""
Toolbox Tests

Tool availability per scope, argument validation and the proposal contract:
tools only record proposals on the runtime context, nothing is persisted.
"""

import json

import pytest

from conftest import PROJECT_ID, FakeEmbeddings, FakeStore, item_row
from lumo.agents.retrieval import RetrievalGateway
from lumo.agents.runtime import RuntimeContext
from lumo.agents.tools import Toolbox, tool_names, tool_spec
from lumo.agents.types import InputGuardrailDecision
from lumo.utils.errors import ToolContextError, ToolInputError


def _toolbox(store=None, embeddings=None) -> Toolbox:
    return Toolbox(RetrievalGateway(store or FakeStore(), embeddings))


def test_reminders_are_global_only(project_scope, global_scope):
    assert tool_names(project_scope) == ["fetch_context", "create_task", "add_note"]
    assert tool_names(global_scope) == ["fetch_context", "create_task", "add_note", "set_reminder"]


def test_tool_spec_uses_camel_case_arguments(global_scope):
    spec = tool_spec("create_task", global_scope)

    assert spec["type"] == "function"
    assert spec["function"]["name"] == "create_task"
    properties = spec["function"]["parameters"]["properties"]
    assert "dueDate" in properties
    assert "projectId" in properties
    assert "cross-project" in tool_spec("fetch_context", global_scope)["function"]["description"]


@pytest.mark.asyncio
async def test_create_task_defaults_project_and_trims(project_scope):
    runtime = RuntimeContext(scope=project_scope, latest_prompt="add a task")

    result = await _toolbox().execute("create_task", {"title": "  Ship the beta  ", "dueDate": "2026-04-01"}, runtime)

    assert json.loads(result) == {
        "proposed": {
            "title": "Ship the beta",
            "status": "TODO",
            "dueDate": "2026-04-01",
            "projectId": PROJECT_ID,
            "note": None,
        }
    }
    assert len(runtime.proposed_tasks) == 1
    assert runtime.proposed_tasks[0].project_id == PROJECT_ID


@pytest.mark.asyncio
async def test_global_create_task_keeps_project_optional(global_scope):
    runtime = RuntimeContext(scope=global_scope, latest_prompt="add a task")

    await _toolbox().execute("create_task", {"title": "Review budget"}, runtime)

    assert runtime.proposed_tasks[0].project_id is None


@pytest.mark.asyncio
async def test_invalid_arguments_raise_tool_input_error(project_scope):
    runtime = RuntimeContext(scope=project_scope, latest_prompt="add a task")
    toolbox = _toolbox()

    with pytest.raises(ToolInputError, match="title"):
        await toolbox.execute("create_task", {"title": "ab"}, runtime)
    with pytest.raises(ToolInputError):
        await toolbox.execute("add_note", {"body": "too short"}, runtime)
    with pytest.raises(ToolInputError):
        await toolbox.execute("add_note", {"body": "A long enough body", "tags": ["x"] * 11}, runtime)

    assert runtime.proposed_tasks == []
    assert runtime.proposed_notes == []


@pytest.mark.asyncio
async def test_unknown_or_out_of_scope_tool_is_rejected(project_scope):
    runtime = RuntimeContext(scope=project_scope, latest_prompt="remind me")
    toolbox = _toolbox()

    with pytest.raises(ToolInputError, match="Unknown tool"):
        await toolbox.execute("set_reminder", {"content": "Call Ana", "dueAt": "2026-04-01T09:00"}, runtime)
    with pytest.raises(ToolInputError, match="Unknown tool"):
        await toolbox.execute("delete_everything", {}, runtime)


@pytest.mark.asyncio
async def test_tool_without_runtime_context_raises():
    with pytest.raises(ToolContextError):
        await _toolbox().execute("create_task", {"title": "Ship it"}, None)


@pytest.mark.asyncio
async def test_set_reminder_and_note_proposals(global_scope):
    runtime = RuntimeContext(scope=global_scope, latest_prompt="remind me")
    toolbox = _toolbox()

    await toolbox.execute("add_note", {"body": "Decisions from the offsite", "tags": [" ops ", "q2"]}, runtime)
    await toolbox.execute("set_reminder", {"content": "Call Ana", "dueAt": "2026-04-01T09:00"}, runtime)

    assert runtime.proposed_notes[0].tags == ["ops", "q2"]
    assert runtime.proposed_reminders[0].due_at == "2026-04-01T09:00"
    assert [a.kind for a in runtime.aggregate_actions()] == ["add_note", "set_reminder"]


@pytest.mark.asyncio
async def test_note_project_id_is_length_bounded(global_scope):
    runtime = RuntimeContext(scope=global_scope, latest_prompt="save a note")
    toolbox = _toolbox()

    with pytest.raises(ToolInputError, match="projectId"):
        await toolbox.execute("add_note", {"body": "Decisions from the offsite", "projectId": "abc"}, runtime)
    with pytest.raises(ToolInputError, match="projectId"):
        await toolbox.execute("add_note", {"body": "Decisions from the offsite", "projectId": "p" * 31}, runtime)

    await toolbox.execute("add_note", {"body": "Decisions from the offsite", "projectId": PROJECT_ID}, runtime)
    assert [n.project_id for n in runtime.proposed_notes] == [PROJECT_ID]


@pytest.mark.asyncio
async def test_fetch_context_defaults_to_rewritten_prompt(project_scope):
    embeddings = FakeEmbeddings()
    store = FakeStore(search_rows=[item_row("n1", 0.3)])
    runtime = RuntimeContext(scope=project_scope, latest_prompt="whats up", time_hint="2026-03-02")
    runtime.input_decision = InputGuardrailDecision(rewritten="What is the launch status?", intent="status")

    result = await _toolbox(store, embeddings).execute("fetch_context", {"k": 3}, runtime)

    assert embeddings.calls == [["What is the launch status?"]]
    assert store.called("search_items")[0]["k"] == 3
    assert len(runtime.retrieval_calls) == 1
    bundle = json.loads(result)
    assert bundle["references"][0]["itemId"] == "n1"


@pytest.mark.asyncio
async def test_fetch_context_rejects_bad_date(project_scope):
    runtime = RuntimeContext(scope=project_scope, latest_prompt="whats up")

    with pytest.raises(ToolInputError, match="date"):
        await _toolbox().execute("fetch_context", {"date": "March 2nd"}, runtime)
