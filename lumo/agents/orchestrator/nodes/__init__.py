"""
Conversation workflow nodes
"""

from lumo.agents.orchestrator.nodes.input_guardrail import input_guardrail_node
from lumo.agents.orchestrator.nodes.retrieve import retrieve_node
from lumo.agents.orchestrator.nodes.agent import agent_node
from lumo.agents.orchestrator.nodes.tools import tools_node
from lumo.agents.orchestrator.nodes.output_guardrail import output_guardrail_node
from lumo.agents.orchestrator.nodes.finalize import finalize_node, unavailable_node

__all__ = [
    "input_guardrail_node",
    "retrieve_node",
    "agent_node",
    "tools_node",
    "output_guardrail_node",
    "finalize_node",
    "unavailable_node",
]
