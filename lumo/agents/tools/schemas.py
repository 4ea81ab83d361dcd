"""
Tool argument schemas

Proposal tools reuse the proposal models directly; fetch_context has its own
argument model. JSON schemas handed to the model are generated from these.
"""

from typing import Optional

from pydantic import Field

from lumo.agents.types import ProposalModel, ProposedNote, ProposedReminder, ProposedTask


class FetchContextArgs(ProposalModel):
    """Arguments of fetch_context"""
    query: Optional[str] = Field(default=None, min_length=3, max_length=2000, description="What to search for; defaults to the user's message")
    date: Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$", description="Day to focus on, YYYY-MM-DD")
    k: Optional[int] = Field(default=None, ge=1, le=20, description="Number of snippets to retrieve")


TOOL_DESCRIPTIONS = {
    "fetch_context": "Retrieve relevant notes, documents and authoritative tasks for the current scope.",
    "fetch_context_global": "Retrieve cross-project tasks, meetings, risks, and relevant notes for the user.",
    "create_task": "Propose a new task. The app asks the user to confirm before anything is saved.",
    "add_note": "Propose a note to save. The app asks the user to confirm before anything is saved.",
    "set_reminder": "Propose a reminder. The app asks the user to confirm before anything is scheduled.",
}


TOOL_ARGUMENTS = {
    "fetch_context": FetchContextArgs,
    "create_task": ProposedTask,
    "add_note": ProposedNote,
    "set_reminder": ProposedReminder,
}
