"""
Tools node - execute the tool calls of the last agent message
"""

import json

from langchain_core.messages import ToolMessage
from langchain_core.runnables import RunnableConfig
from loguru import logger

from lumo.agents.orchestrator.context import OrchestratorContext
from lumo.agents.orchestrator.state import ConversationState
from lumo.agents.runtime import get_runtime
from lumo.llm.response_utils import extract_tool_calls
from lumo.utils.errors import ToolInputError


BUDGET_EXHAUSTED = "Tool budget exhausted for this turn. Answer with the information you already have."


async def tools_node(state: ConversationState, ctx: OrchestratorContext, config: RunnableConfig) -> ConversationState:
    """
    Run requested tools in order, answering every call with a ToolMessage.

    Invalid or unknown calls are answered with an error the model can act on.
    Calls past the per-turn budget are refused and tools are switched off.
    """
    runtime = get_runtime(config)
    calls = extract_tool_calls(state["messages"][-1])
    tool_messages = []

    for call in calls:
        if runtime.tool_calls_used >= ctx.max_tool_calls:
            logger.warning(f"Tool budget ({ctx.max_tool_calls}) exhausted; refusing {call['name']}")
            tool_messages.append(ToolMessage(
                content=json.dumps({"error": BUDGET_EXHAUSTED}),
                tool_call_id=call["id"],
                name=call["name"],
            ))
            continue

        runtime.tool_calls_used += 1
        try:
            content = await ctx.toolbox.execute(call["name"], call["args"], runtime)
        except ToolInputError as e:
            content = json.dumps({"error": str(e)})
        tool_messages.append(ToolMessage(content=content, tool_call_id=call["id"], name=call["name"]))

    state = dict(state)
    state["messages"] = list(state["messages"]) + tool_messages
    state["tools_enabled"] = runtime.tool_calls_used < ctx.max_tool_calls
    state["next_step"] = "agent"
    return state
