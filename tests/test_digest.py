"""
Daily Digest Tests

Markdown section and JSON tail extraction, payload merging with the
authoritative facts, and the digest service flow.
"""

import pytest

from conftest import USER_ID, FakeStore
from lumo.agents.digest import DigestService, build_digest_payload, digest_prompt, extract_machine_tail, extract_section_bullets
from lumo.agents.types import (
    ConversationResult,
    GuardrailReport,
    InputGuardrailDecision,
    MeetingSummary,
    ProposedAction,
    RetrievalBundle,
    RiskSummary,
    TaskSummary,
)
from lumo.utils.dates import today_utc


REPLY = """## Today’s Overview
- Two meetings, one risky project
• Budget review due

## Top Priorities (Next Steps)
- Call Ana about the beta
- Close out the launch checklist

## Meetings
- 09:00 Standup

```json
{"intent": "daily_digest", "followups": ["  Check budget  ", 3, "Ping design"]}
```
"""


def _conversation(reply=REPLY, retrieval=None) -> ConversationResult:
    return ConversationResult(
        reply=reply,
        intent="daily_digest",
        actions=[ProposedAction(kind="create_task", args={"title": "Call Ana"})],
        guardrails=GuardrailReport(input=InputGuardrailDecision(rewritten="digest", intent="daily_digest")),
        retrieval=retrieval,
    )


# ============================================================================
# Extraction
# ============================================================================

def test_extract_section_bullets():
    assert extract_section_bullets(REPLY, "Today's Overview") == ["Two meetings, one risky project", "Budget review due"]
    assert extract_section_bullets(REPLY, "top priorities (next steps)") == [
        "Call Ana about the beta",
        "Close out the launch checklist",
    ]
    assert extract_section_bullets(REPLY, "Projects at Risk") == []


def test_extract_machine_tail_strict_json():
    tail = extract_machine_tail(REPLY)

    assert tail["intent"] == "daily_digest"


def test_extract_machine_tail_recovers_braces_and_rejects_garbage():
    assert extract_machine_tail("text\n```\nnote: {\"a\": 1} trailing\n```") == {"a": 1}
    assert extract_machine_tail("no fenced block at all") is None
    assert extract_machine_tail("```\nnot json\n```") is None


def test_build_digest_payload_merges_facts():
    retrieval = RetrievalBundle(
        tasks=[TaskSummary(id=f"t{i}", title=f"Task {i}", status="todo", project_slug="alpha", project_id="proj-alpha-001") for i in range(25)],
        meetings=[MeetingSummary(id="m1", title="Standup", starts_at="2026-03-02T09:00:00+00:00")],
        risks=[RiskSummary(project_id="proj-alpha-001", project_slug="alpha", score=0.7, label="Slipping")],
    )
    conversation = _conversation(retrieval=retrieval)

    payload = build_digest_payload("2026-03-02", conversation, retrieval, extract_machine_tail(REPLY))

    assert payload.date == "2026-03-02"
    assert payload.markdown == REPLY
    assert len(payload.sections.tasks) == 20
    assert payload.sections.tasks[0].project == "alpha"
    assert payload.sections.meetings[0].time == "2026-03-02T09:00:00+00:00"
    assert payload.sections.risks[0].label == "Slipping"
    assert payload.sections.overview[0] == "Two meetings, one risky project"
    assert payload.followups == ["Check budget", "Ping design"]
    assert [a.kind for a in payload.actions] == ["create_task"]

    wire = payload.to_wire()
    assert wire["sections"]["tasks"][0]["dueDate"] is None
    assert wire["sections"]["risks"][0]["projectId"] == "proj-alpha-001"


# ============================================================================
# Service
# ============================================================================

class StubGateway:
    def __init__(self):
        self.calls = []

    async def retrieve(self, scope, query, k=None, date=None, intent=None):
        self.calls.append({"query": query, "date": date, "intent": intent})
        return RetrievalBundle(tasks=[TaskSummary(id="t1", title="Fallback task", status="todo")])


class StubOrchestrator:
    def __init__(self, conversation):
        self.conversation = conversation
        self.gateway = StubGateway()
        self.calls = []

    async def run_conversation(self, scope, message, history=(), time_hint=None):
        self.calls.append({"message": message, "history": list(history), "time_hint": time_hint})
        return self.conversation


@pytest.mark.asyncio
async def test_generate_digest_uses_turn_retrieval(global_scope):
    retrieval = RetrievalBundle(tasks=[TaskSummary(id="t9", title="From the turn", status="todo")])
    orchestrator = StubOrchestrator(_conversation(retrieval=retrieval))

    result = await DigestService(orchestrator).generate_digest(global_scope, "2026-03-02")

    assert orchestrator.calls == [{"message": digest_prompt("2026-03-02"), "history": [], "time_hint": "2026-03-02"}]
    assert "meetings, top risks, 3-7 priorities, and my tasks list" in orchestrator.calls[0]["message"]
    assert [t.id for t in result.payload.sections.tasks] == ["t9"]
    assert orchestrator.gateway.calls == []
    assert result.tail["intent"] == "daily_digest"


@pytest.mark.asyncio
async def test_generate_digest_falls_back_to_fact_retrieval(global_scope):
    orchestrator = StubOrchestrator(_conversation(retrieval=None))

    result = await DigestService(orchestrator).generate_digest(global_scope, "not-a-date")

    today = today_utc().isoformat()
    assert result.payload.date == today
    assert orchestrator.gateway.calls == [{"query": "", "date": today, "intent": "daily_digest"}]
    assert [t.id for t in result.payload.sections.tasks] == ["t1"]


@pytest.mark.asyncio
async def test_persist_saves_wire_payload(global_scope):
    store = FakeStore()
    service = DigestService(StubOrchestrator(_conversation(retrieval=RetrievalBundle())), store)

    result = await service.generate_digest(global_scope, "2026-03-02")
    digest_id = await service.persist(global_scope, result)

    assert digest_id == "digest-1"
    saved = store.saved_digests[0]
    assert saved["userId"] == USER_ID
    assert saved["payload"]["date"] == "2026-03-02"
    assert "followups" in saved["payload"]


@pytest.mark.asyncio
async def test_persist_without_store_raises(global_scope):
    service = DigestService(StubOrchestrator(_conversation(retrieval=RetrievalBundle())))
    result = await service.generate_digest(global_scope, "2026-03-02")

    with pytest.raises(RuntimeError):
        await service.persist(global_scope, result)
