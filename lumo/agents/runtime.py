"""
Per-turn runtime context shared by graph nodes and tool handlers.

One RuntimeContext is created per conversation turn, handed to the graph via
config["configurable"]["runtime"], and discarded once the result is built.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from lumo.agents.types import (
    ConversationTurn,
    GuardrailReport,
    InputGuardrailDecision,
    OutputGuardrailDecision,
    ProposedAction,
    ProposedNote,
    ProposedReminder,
    ProposedTask,
    Reference,
    RetrievalBundle,
    Scope,
)
from lumo.utils.errors import ToolContextError


@dataclass
class RuntimeContext:
    """Mutable state of one conversation turn"""

    scope: Scope
    latest_prompt: str
    time_hint: Optional[str] = None
    history: List[ConversationTurn] = field(default_factory=list)
    input_decision: Optional[InputGuardrailDecision] = None
    output_decision: Optional[OutputGuardrailDecision] = None
    retrieval_calls: List[RetrievalBundle] = field(default_factory=list)
    proposed_tasks: List[ProposedTask] = field(default_factory=list)
    proposed_notes: List[ProposedNote] = field(default_factory=list)
    proposed_reminders: List[ProposedReminder] = field(default_factory=list)
    tool_calls_used: int = 0

    @property
    def intent(self) -> str:
        if self.input_decision is None:
            return "general_q"
        return self.input_decision.intent

    @property
    def last_retrieval(self) -> Optional[RetrievalBundle]:
        return self.retrieval_calls[-1] if self.retrieval_calls else None

    def record_retrieval(self, bundle: RetrievalBundle) -> None:
        self.retrieval_calls.append(bundle)

    def aggregate_references(self) -> List[Reference]:
        """References of every retrieval call, first occurrence of each item wins"""
        seen = {}
        for bundle in self.retrieval_calls:
            for ref in bundle.references:
                if ref.item_id not in seen:
                    seen[ref.item_id] = ref
        return list(seen.values())

    def aggregate_actions(self) -> List[ProposedAction]:
        """Tasks, then notes, then reminders, each in call order"""
        actions = [
            ProposedAction(kind="create_task", args=task.to_wire()) for task in self.proposed_tasks
        ]
        actions += [ProposedAction(kind="add_note", args=note.to_wire()) for note in self.proposed_notes]
        actions += [
            ProposedAction(kind="set_reminder", args=reminder.to_wire())
            for reminder in self.proposed_reminders
        ]
        return actions

    def guardrail_report(self) -> GuardrailReport:
        return GuardrailReport(
            input=self.input_decision or InputGuardrailDecision(rewritten=self.latest_prompt),
            output=self.output_decision,
        )

    def proposals_snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        """Wire-form proposals, used as evidence for the output guardrail"""
        return {
            "proposedTasks": [t.to_wire() for t in self.proposed_tasks],
            "proposedNotes": [n.to_wire() for n in self.proposed_notes],
            "proposedReminders": [r.to_wire() for r in self.proposed_reminders],
        }


def get_runtime(config: Optional[Dict[str, Any]]) -> RuntimeContext:
    """
    Fetch the turn's RuntimeContext from a LangGraph run config.

    Raises:
        ToolContextError: the graph was invoked without a runtime context
    """
    runtime = ((config or {}).get("configurable") or {}).get("runtime")
    if not isinstance(runtime, RuntimeContext):
        raise ToolContextError("Runtime context is missing from the graph config")
    return runtime
