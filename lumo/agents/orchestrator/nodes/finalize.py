"""
Finalize nodes - close the turn with a reply
"""

from langchain_core.runnables import RunnableConfig
from loguru import logger

from lumo.agents.orchestrator.context import OrchestratorContext
from lumo.agents.orchestrator.formatter import unavailable_reply
from lumo.agents.orchestrator.state import ConversationState
from lumo.agents.runtime import get_runtime


async def finalize_node(state: ConversationState, ctx: OrchestratorContext, config: RunnableConfig) -> ConversationState:
    """Log what the turn proposed and mark the graph done."""
    runtime = get_runtime(config)
    logger.info(
        f"Turn complete [{runtime.scope.label}]: intent={runtime.intent} tools={runtime.tool_calls_used} "
        f"tasks={len(runtime.proposed_tasks)} notes={len(runtime.proposed_notes)} "
        f"reminders={len(runtime.proposed_reminders)}"
    )
    state = dict(state)
    state["next_step"] = "end"
    return state


async def unavailable_node(state: ConversationState, ctx: OrchestratorContext, config: RunnableConfig) -> ConversationState:
    """No model configured: answer with the unavailable notice."""
    runtime = get_runtime(config)
    state = dict(state)
    state["reply"] = unavailable_reply(runtime)
    state["next_step"] = "end"
    return state
