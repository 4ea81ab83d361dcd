"""
Orchestrator formatter - turn a finished (or interrupted) runtime into a result
"""

from lumo.agents.runtime import RuntimeContext
from lumo.agents.types import ConversationResult


NO_RESPONSE_REPLY = "I couldn't generate a response right now."
OUTPUT_BLOCKED_REPLY = "Reply blocked by guardrail."


def unavailable_reply(runtime: RuntimeContext) -> str:
    agent = "Global" if runtime.scope.is_global else "Project"
    return f"{agent} agent is unavailable (missing API key)."


def build_result(runtime: RuntimeContext, reply: str) -> ConversationResult:
    """Copy the runtime's evidence and proposals into a ConversationResult."""
    return ConversationResult(
        reply=reply,
        intent=runtime.intent,
        references=runtime.aggregate_references(),
        proposed_tasks=list(runtime.proposed_tasks),
        proposed_notes=list(runtime.proposed_notes),
        proposed_reminders=list(runtime.proposed_reminders),
        actions=runtime.aggregate_actions(),
        guardrails=runtime.guardrail_report(),
        retrieval=runtime.last_retrieval,
    )


def build_blocked_result(runtime: RuntimeContext) -> ConversationResult:
    """Input veto: the guardrail's message, nothing else"""
    report = runtime.guardrail_report()
    return ConversationResult(
        reply=report.input.message or "Request blocked.",
        intent=runtime.intent,
        guardrails=report,
    )


def build_vetoed_result(runtime: RuntimeContext) -> ConversationResult:
    """Output veto: refusal message, evidence and proposals kept"""
    output = runtime.output_decision
    input_decision = runtime.input_decision
    reply = (
        (output.message if output else None)
        or (input_decision.message if input_decision else None)
        or OUTPUT_BLOCKED_REPLY
    )
    return build_result(runtime, reply)
