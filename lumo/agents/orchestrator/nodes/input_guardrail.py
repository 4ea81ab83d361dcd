"""
Input guardrail node - classify the message and stop vetoed requests
"""

from langchain_core.runnables import RunnableConfig
from loguru import logger

from lumo.agents.orchestrator.context import OrchestratorContext
from lumo.agents.orchestrator.state import ConversationState
from lumo.agents.runtime import get_runtime
from lumo.utils.errors import InputGuardrailTripwire


async def input_guardrail_node(state: ConversationState, ctx: OrchestratorContext, config: RunnableConfig) -> ConversationState:
    """Evaluate the latest message; raise InputGuardrailTripwire on veto."""
    runtime = get_runtime(config)

    decision = await ctx.input_guardrail.evaluate(
        runtime.scope,
        runtime.latest_prompt,
        runtime.history,
        time_hint=runtime.time_hint,
    )
    runtime.input_decision = decision

    if decision.tripwire:
        logger.warning(f"Input guardrail blocked request [{runtime.scope.label}]: {decision.message}")
        raise InputGuardrailTripwire(decision)

    state = dict(state)
    if not ctx.model_enabled:
        logger.warning(f"Agent unavailable for {runtime.scope.label}: no model configured")
        state["next_step"] = "unavailable"
    else:
        state["next_step"] = "retrieve"
    return state
