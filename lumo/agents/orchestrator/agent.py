"""
Conversation Orchestrator - Main LangGraph workflow

One graph serves both scopes (a single project or everything a user owns);
the Scope on each turn's RuntimeContext selects prompts, tools and facts.
"""

from typing import Iterable, Optional, Union

from langchain_core.runnables import RunnableConfig
from langgraph.graph import StateGraph, END
from loguru import logger

from lumo.agents.guardrails import InputGuardrail, OutputGuardrail
from lumo.agents.orchestrator.context import OrchestratorContext
from lumo.agents.orchestrator.formatter import (
    NO_RESPONSE_REPLY,
    build_blocked_result,
    build_result,
    build_vetoed_result,
)
from lumo.agents.orchestrator.nodes import (
    agent_node,
    finalize_node,
    input_guardrail_node,
    output_guardrail_node,
    retrieve_node,
    tools_node,
    unavailable_node,
)
from lumo.agents.orchestrator.routing import route_after_agent, route_after_input
from lumo.agents.orchestrator.state import ConversationState
from lumo.agents.retrieval import RetrievalGateway
from lumo.agents.runtime import RuntimeContext
from lumo.agents.tools import Toolbox
from lumo.agents.types import ConversationResult, ConversationTurn, Scope
from lumo.config.settings import settings
from lumo.utils.errors import InputGuardrailTripwire, OutputGuardrailTripwire, ToolContextError


_shared_orchestrator: Optional["ConversationOrchestrator"] = None


def get_orchestrator() -> "ConversationOrchestrator":
    """Get shared orchestrator instance (singleton) wired to the real model, embeddings and store."""
    global _shared_orchestrator
    if _shared_orchestrator is None:
        from lumo.infra.store import get_store
        from lumo.llm import EmbeddingService, create_llm_if_configured, llm_enabled

        llm = create_llm_if_configured()
        embeddings = EmbeddingService() if llm_enabled() else None
        _shared_orchestrator = ConversationOrchestrator(llm=llm, store=get_store(), embeddings=embeddings)
    return _shared_orchestrator


def _bind(node, ctx: OrchestratorContext):
    """Close a node over the shared context; LangGraph supplies the run config."""
    async def run(state: ConversationState, config: RunnableConfig):
        return await node(state, ctx, config)
    run.__name__ = node.__name__
    return run


class ConversationOrchestrator:
    """
    Runs one conversation turn through the guarded agent loop.

    Workflow: START → input_guardrail → [unavailable | retrieve → agent ⇄ tools
    → output_guardrail → finalize] → END
    """

    def __init__(
        self,
        llm=None,
        store=None,
        embeddings=None,
        gateway: Optional[RetrievalGateway] = None,
        input_guardrail: Optional[InputGuardrail] = None,
        output_guardrail: Optional[OutputGuardrail] = None,
        max_tool_calls: Optional[int] = None,
    ):
        gateway = gateway or RetrievalGateway(store, embeddings)
        self.ctx = OrchestratorContext(
            llm=llm,
            gateway=gateway,
            toolbox=Toolbox(gateway),
            input_guardrail=input_guardrail or InputGuardrail(llm),
            output_guardrail=output_guardrail or OutputGuardrail(llm),
            max_tool_calls=max_tool_calls if max_tool_calls is not None else settings.agent_max_tool_calls,
        )
        self.workflow = self._build_workflow()

        logger.info(
            f"Initialized ConversationOrchestrator (model={'on' if llm is not None else 'off'}, "
            f"embeddings={'on' if embeddings is not None else 'off'}, max_tool_calls={self.ctx.max_tool_calls})"
        )

    @property
    def gateway(self) -> RetrievalGateway:
        return self.ctx.gateway

    def _build_workflow(self):
        """Build the LangGraph workflow."""
        ctx = self.ctx
        workflow = StateGraph(ConversationState)

        workflow.add_node("input_guardrail", _bind(input_guardrail_node, ctx))
        workflow.add_node("unavailable", _bind(unavailable_node, ctx))
        workflow.add_node("retrieve", _bind(retrieve_node, ctx))
        workflow.add_node("agent", _bind(agent_node, ctx))
        workflow.add_node("tools", _bind(tools_node, ctx))
        workflow.add_node("output_guardrail", _bind(output_guardrail_node, ctx))
        workflow.add_node("finalize", _bind(finalize_node, ctx))

        workflow.set_entry_point("input_guardrail")
        workflow.add_conditional_edges(
            "input_guardrail",
            route_after_input,
            {"unavailable": "unavailable", "retrieve": "retrieve"}
        )
        workflow.add_edge("retrieve", "agent")
        workflow.add_conditional_edges(
            "agent",
            route_after_agent,
            {"tools": "tools", "output_guardrail": "output_guardrail"}
        )
        workflow.add_edge("tools", "agent")
        workflow.add_edge("output_guardrail", "finalize")
        workflow.add_edge("finalize", END)
        workflow.add_edge("unavailable", END)

        return workflow.compile()

    def _recursion_limit(self) -> int:
        # retrieve + guardrails + finalize, then two steps per agent/tools round
        return 10 + 2 * (self.ctx.max_tool_calls + 2)

    async def run_conversation(
        self,
        scope: Scope,
        message: str,
        history: Iterable[Union[ConversationTurn, dict]] = (),
        time_hint: Optional[str] = None,
    ) -> ConversationResult:
        """
        Run one turn and return a well-formed result.

        Guardrail vetoes become refusal replies; any other runtime failure
        becomes a generic reply. Only wiring defects (ToolContextError) raise.
        """
        runtime = RuntimeContext(
            scope=scope,
            latest_prompt=message,
            time_hint=time_hint,
            history=[ConversationTurn.model_validate(turn) for turn in history],
        )
        initial_state: ConversationState = {
            "messages": [],
            "next_step": "input_guardrail",
            "tools_enabled": True,
            "draft": None,
            "reply": None,
        }
        config: RunnableConfig = {
            "configurable": {"runtime": runtime},
            "recursion_limit": self._recursion_limit(),
        }

        logger.info(f"\n{'='*80}\nCONVERSATION [{scope.label}]: {message[:200]}\n{'='*80}")

        try:
            final_state = await self.workflow.ainvoke(initial_state, config=config)
        except InputGuardrailTripwire as e:
            runtime.input_decision = e.decision
            return build_blocked_result(runtime)
        except OutputGuardrailTripwire as e:
            runtime.output_decision = e.decision
            return build_vetoed_result(runtime)
        except ToolContextError:
            raise
        except Exception as e:
            logger.exception(f"Conversation failed for {scope.label}: {e}")
            return build_result(runtime, NO_RESPONSE_REPLY)

        reply = final_state.get("reply")
        if reply is None:
            reply = final_state.get("draft") or ""
        return build_result(runtime, reply)
