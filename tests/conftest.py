"""
Shared fixtures and in-test fakes.

The fakes stand in for the chat model, the embedding service and the
workspace store so the suite runs without network or database access.
"""

from pathlib import Path
import sys
from typing import Any, Dict, List, Optional

import pytest
from langchain_core.messages import AIMessage

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from lumo.agents.guardrails import InputGuardrail, OutputGuardrail
from lumo.agents.orchestrator import ConversationOrchestrator
from lumo.agents.types import Scope
from lumo.utils.errors import RetrievalError


PROJECT_ID = "proj-alpha-001"
USER_ID = "user-42"
EMBEDDING_WIDTH = 1536


class FakeLLM:
    """
    Scripted chat model.

    Each ainvoke() pops the next scripted response: a string becomes an
    AIMessage, an AIMessage is returned as is, an exception is raised.
    """

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses = list(responses or [])
        self.calls: List[List[Any]] = []
        self.bind_calls: List[Dict[str, Any]] = []

    def bind_tools(self, specs, **kwargs):
        self.bind_calls.append({"specs": specs, **kwargs})
        return self

    async def ainvoke(self, messages, *args, **kwargs):
        self.calls.append(list(messages))
        if not self.responses:
            return AIMessage(content="")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return AIMessage(content=response)
        return response


def tool_call_message(*calls) -> AIMessage:
    """AIMessage requesting the given (name, args) tool calls"""
    return AIMessage(
        content="",
        tool_calls=[
            {"name": name, "args": args, "id": f"call_{index}"}
            for index, (name, args) in enumerate(calls)
        ],
    )


class FakeEmbeddings:
    def __init__(self, width: int = EMBEDDING_WIDTH, error: Optional[Exception] = None):
        self.width = width
        self.error = error
        self.calls: List[List[str]] = []

    async def aembed_texts(self, texts):
        self.calls.append(list(texts))
        if self.error:
            raise self.error
        return [[0.01] * self.width for _ in texts]


class FakeStore:
    """In-memory WorkspaceStore; `fail` names methods that should raise"""

    def __init__(
        self,
        search_rows=None,
        tasks=None,
        events=None,
        risks=None,
        projects=None,
        chat_turns=None,
        fail=(),
    ):
        self.search_rows = list(search_rows or [])
        self.tasks = list(tasks or [])
        self.events = list(events or [])
        self.risks = list(risks or [])
        self.projects = dict(projects or {})
        self.chat_turns = list(chat_turns or [])
        self.fail = set(fail)
        self.calls: List[tuple] = []
        self.appended: List[Dict[str, Any]] = []
        self.saved_digests: List[Dict[str, Any]] = []

    def _record(self, name: str, **kwargs):
        self.calls.append((name, kwargs))
        if name in self.fail:
            raise RetrievalError(f"{name} failed")

    def called(self, name: str) -> List[Dict[str, Any]]:
        return [kwargs for called_name, kwargs in self.calls if called_name == name]

    def search_items(self, vector, k, user_id=None, project_id=None):
        self._record("search_items", k=k, user_id=user_id, project_id=project_id)
        return self.search_rows[:k]

    def list_open_tasks(self, user_id=None, project_id=None, limit=50):
        self._record("list_open_tasks", user_id=user_id, project_id=project_id, limit=limit)
        return self.tasks[:limit]

    def list_calendar_events(self, user_id, start, end):
        self._record("list_calendar_events", user_id=user_id, start=start, end=end)
        return self.events

    def list_risk_scores(self, user_id):
        self._record("list_risk_scores", user_id=user_id)
        return self.risks

    def get_project_by_slug(self, slug, user_id=None):
        self._record("get_project_by_slug", slug=slug, user_id=user_id)
        project = self.projects.get(slug)
        if project and user_id and project.get("userId") != user_id:
            return None
        return project

    def recent_chat_turns(self, project_id, limit=9):
        self._record("recent_chat_turns", project_id=project_id, limit=limit)
        return self.chat_turns[-limit:]

    def append_chat_turn(self, user_id, project_id, role, content):
        self._record("append_chat_turn", user_id=user_id, project_id=project_id, role=role)
        self.appended.append({"userId": user_id, "projectId": project_id, "role": role, "content": content})
        return f"turn-{len(self.appended)}"

    def save_digest(self, user_id, payload):
        self._record("save_digest", user_id=user_id)
        self.saved_digests.append({"userId": user_id, "payload": payload})
        return f"digest-{len(self.saved_digests)}"


def item_row(item_id: str, distance: float, **overrides) -> Dict[str, Any]:
    row = {
        "id": item_id,
        "type": "NOTE",
        "title": f"Note {item_id}",
        "body": f"Body of {item_id}",
        "raw": {},
        "projectId": PROJECT_ID,
        "distance": distance,
    }
    row.update(overrides)
    return row


def task_row(task_id: str, status: str = "todo", **overrides) -> Dict[str, Any]:
    row = {
        "id": task_id,
        "title": f"Task {task_id}",
        "status": status,
        "dueDate": None,
        "projectId": PROJECT_ID,
        "projectSlug": "alpha",
    }
    row.update(overrides)
    return row


def build_orchestrator(llm=None, store=None, embeddings=None, input_llm=None, output_llm=None, **kwargs):
    """Orchestrator whose guardrails only run when given their own scripted model"""
    return ConversationOrchestrator(
        llm=llm,
        store=store if store is not None else FakeStore(),
        embeddings=embeddings,
        input_guardrail=InputGuardrail(input_llm, enabled=input_llm is not None),
        output_guardrail=OutputGuardrail(output_llm, enabled=output_llm is not None),
        **kwargs,
    )


@pytest.fixture
def project_scope() -> Scope:
    return Scope.for_project(
        user_id=USER_ID,
        project_id=PROJECT_ID,
        project_slug="alpha",
        project_description="Launch the alpha release",
    )


@pytest.fixture
def global_scope() -> Scope:
    return Scope.for_user(USER_ID)


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()
