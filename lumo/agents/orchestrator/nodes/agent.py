"""
Agent node - one model call with the scope's toolbox bound
"""

from langchain_core.runnables import RunnableConfig
from loguru import logger

from lumo.agents.orchestrator.context import OrchestratorContext
from lumo.agents.orchestrator.state import ConversationState
from lumo.agents.runtime import get_runtime
from lumo.llm.response_utils import extract_tool_calls


async def agent_node(state: ConversationState, ctx: OrchestratorContext, config: RunnableConfig) -> ConversationState:
    """Ask the model for its next step: tool calls or a draft reply."""
    runtime = get_runtime(config)
    specs = ctx.toolbox.specs(runtime.scope)

    if state.get("tools_enabled", True):
        model = ctx.llm.bind_tools(specs)
    else:
        # Budget spent: tools stay visible for the transcript but may not be called
        model = ctx.llm.bind_tools(specs, tool_choice="none")

    response = await model.ainvoke(list(state["messages"]))
    calls = extract_tool_calls(response)
    if calls:
        logger.info(f"Agent requested {len(calls)} tool call(s): {', '.join(c['name'] for c in calls)}")

    state = dict(state)
    state["messages"] = list(state["messages"]) + [response]
    state["next_step"] = "tools" if calls else "output_guardrail"
    return state
