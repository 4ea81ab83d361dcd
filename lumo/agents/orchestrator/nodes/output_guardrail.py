"""
Output guardrail node - validate the draft before it leaves the loop
"""

from langchain_core.runnables import RunnableConfig
from loguru import logger

from lumo.agents.orchestrator.context import OrchestratorContext
from lumo.agents.orchestrator.state import ConversationState
from lumo.agents.runtime import get_runtime
from lumo.llm.response_utils import extract_text_from_response
from lumo.utils.errors import OutputGuardrailTripwire


async def output_guardrail_node(state: ConversationState, ctx: OrchestratorContext, config: RunnableConfig) -> ConversationState:
    """Validate the draft; raise OutputGuardrailTripwire on veto."""
    runtime = get_runtime(config)
    messages = state.get("messages") or []
    draft = extract_text_from_response(messages[-1]) if messages else ""
    if not draft.strip():
        logger.warning(f"Agent produced an empty draft for {runtime.scope.label}")

    decision = await ctx.output_guardrail.validate(draft, runtime)
    runtime.output_decision = decision

    if decision.tripwire:
        logger.warning(f"Output guardrail vetoed reply [{runtime.scope.label}]: {decision.message}")
        raise OutputGuardrailTripwire(decision)

    state = dict(state)
    state["draft"] = draft
    state["reply"] = decision.patched or draft
    state["next_step"] = "finalize"
    return state
