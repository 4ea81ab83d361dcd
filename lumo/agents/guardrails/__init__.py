"""
Guardrails - input gate and output validator around the agent loop
"""

from lumo.agents.guardrails.input import InputGuardrail, heuristic_intent
from lumo.agents.guardrails.output import OutputGuardrail

__all__ = [
    "InputGuardrail",
    "OutputGuardrail",
    "heuristic_intent",
]
