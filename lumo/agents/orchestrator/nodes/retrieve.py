"""
Retrieve node - pre-fetch evidence and assemble the model-facing messages
"""

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from langchain_core.runnables import RunnableConfig

from lumo.agents.orchestrator.context import OrchestratorContext
from lumo.agents.orchestrator.prompts import build_context_message, build_instructions, build_turn_header
from lumo.agents.orchestrator.state import ConversationState
from lumo.agents.runtime import get_runtime
from lumo.config.settings import settings


async def retrieve_node(state: ConversationState, ctx: OrchestratorContext, config: RunnableConfig) -> ConversationState:
    """Run one retrieval for the rewritten message and build the prompt."""
    runtime = get_runtime(config)
    decision = runtime.input_decision
    message = (decision.rewritten if decision else None) or runtime.latest_prompt

    bundle = await ctx.gateway.retrieve(
        runtime.scope,
        message,
        date=runtime.time_hint,
        intent=runtime.intent,
    )
    runtime.record_retrieval(bundle)

    messages = [
        SystemMessage(content=build_instructions(runtime.scope, runtime.intent, runtime.time_hint)),
        SystemMessage(content=build_turn_header(runtime.intent)),
        SystemMessage(content=build_context_message(bundle)),
    ]
    history = runtime.history[-settings.agent_history_turns:] if settings.agent_history_turns else []
    for turn in history:
        if turn.role == "user":
            messages.append(HumanMessage(content=turn.content))
        else:
            messages.append(AIMessage(content=turn.content))
    messages.append(HumanMessage(content=message))

    state = dict(state)
    state["messages"] = messages
    state["next_step"] = "agent"
    return state
