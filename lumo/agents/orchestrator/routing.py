"""
Orchestrator routing - conditional edges of the conversation graph
"""

from loguru import logger

from lumo.agents.orchestrator.state import ConversationState
from lumo.llm.response_utils import extract_tool_calls


def route_after_input(state: ConversationState) -> str:
    """Skip the agent loop entirely when no model is configured."""
    return "unavailable" if state.get("next_step") == "unavailable" else "retrieve"


def route_after_agent(state: ConversationState) -> str:
    """Run tools while the model asks for them and the budget allows."""
    messages = state.get("messages") or []
    calls = extract_tool_calls(messages[-1]) if messages else []
    if not calls:
        return "output_guardrail"
    if not state.get("tools_enabled", True):
        logger.warning("Model requested tools after the budget was spent; treating reply as final")
        return "output_guardrail"
    return "tools"
