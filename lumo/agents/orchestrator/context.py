"""
Orchestrator context - process-wide dependencies passed to workflow nodes
"""

from dataclasses import dataclass
from typing import Any, Optional

from lumo.agents.guardrails import InputGuardrail, OutputGuardrail
from lumo.agents.retrieval import RetrievalGateway
from lumo.agents.tools import Toolbox


@dataclass
class OrchestratorContext:
    """
    Shared collaborators for every turn.

    Per-turn state never lives here; it travels in the RuntimeContext.
    """

    llm: Optional[Any]  # Chat model, None when no model is configured
    gateway: RetrievalGateway
    toolbox: Toolbox
    input_guardrail: InputGuardrail
    output_guardrail: OutputGuardrail
    max_tool_calls: int = 6

    @property
    def model_enabled(self) -> bool:
        return self.llm is not None
