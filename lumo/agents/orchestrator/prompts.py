"""
Agent loop prompt templates
"""

import json
from typing import Optional

from lumo.agents.types import RetrievalBundle, Scope
from lumo.config.settings import settings


PROJECT_SECTIONS = (
    "## Summary",
    "## Recommendations (Next Steps)",
    "## Notes & Risks (only when relevant)",
    "## Quick actions",
)

GLOBAL_SECTIONS = (
    "## Today's Overview",
    "## Top Priorities (Next Steps)",
    "## Meetings",
    "## Tasks",
    "## Projects at Risk (omit when none)",
    "## Quick actions",
)


def build_project_instructions(scope: Scope, intent: Optional[str] = None) -> str:
    """System instructions for the project copilot."""
    description = (scope.project_description or "").strip() or "N/A"
    lines = [
        f'You are {settings.system_name}, a warm, grounded copilot for project "{scope.project_slug}".',
        f"Project description:\n{description}",
        f"Primary intent for this turn: {intent}." if intent else None,
        "",
        "Workflow:",
        "- Stay strictly within this project's scope; never discuss other projects or unrelated topics.",
        "- Call the `fetch_context` tool whenever you need facts beyond the conversation history and the context provided.",
        "- Use `create_task` and `add_note` only to propose actions; the app will confirm before persisting.",
        "- If data is missing, ask for the specific detail or suggest the lightweight next step to gather it.",
        "",
        "Response format:",
        "- Keep tone concise, confident, and friendly.",
        "- Always output these sections in order:",
        *PROJECT_SECTIONS,
        "- Recommendations must be 3-7 imperative bullets tailored to the project.",
        "- After the sections append a fenced YAML block with keys intent, references, proposed_tasks, followups.",
        "- Mirror tool proposals in Quick actions and the YAML tail; never invent tasks or references.",
        "- Do not reveal internal tool usage; speak naturally.",
    ]
    return "\n".join(line for line in lines if line is not None)


def build_global_instructions(intent: Optional[str] = None, date_hint: Optional[str] = None) -> str:
    """System instructions for the cross-project copilot."""
    lines = [
        f"You are {settings.system_name}, the global copilot. Aggregate context across all projects to help the user stay ahead.",
        f"Primary intent for this turn: {intent}." if intent else None,
        f"Time frame to focus on: {date_hint}." if date_hint else None,
        "",
        "Behaviors:",
        "- Always ground statements in fetched context or clearly note when data is missing.",
        "- Call `fetch_context` whenever you need authoritative tasks, meetings, risks, or notes.",
        "- Use action tools (`create_task`, `add_note`, `set_reminder`) only to propose actions; the app will execute when confirmed.",
        "- Suggest 3-7 high-leverage next steps. Assume today if no time period is provided.",
        "",
        "Output format:",
        *GLOBAL_SECTIONS,
        "",
        "After the sections append a fenced JSON block with keys intent, references, proposed_tasks, followups, quick_actions.",
        "Ensure Quick actions mirror the proposed tasks, notes and reminders from tool calls.",
    ]
    return "\n".join(line for line in lines if line is not None)


def build_instructions(scope: Scope, intent: Optional[str], date_hint: Optional[str]) -> str:
    if scope.is_global:
        return build_global_instructions(intent=intent, date_hint=date_hint)
    return build_project_instructions(scope, intent=intent)


def build_turn_header(intent: str) -> str:
    return "\n".join([
        f"Intent: {intent}",
        "Call fetch_context before answering if facts are missing.",
        "Never invent tasks, meetings or references; rely on tool outputs and the context provided.",
        "Return the required sections and the fenced tail.",
    ])


def build_context_message(bundle: RetrievalBundle) -> str:
    """Pre-fetched evidence, serialised for the model"""
    return "Context retrieved for this turn (JSON):\n" + json.dumps(bundle.to_wire(), indent=2)
