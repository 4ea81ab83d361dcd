"""
Conversation Orchestrator - guarded agent loop shared by project and global scopes
"""

from lumo.agents.orchestrator.agent import ConversationOrchestrator, get_orchestrator
from lumo.agents.orchestrator.state import ConversationState

__all__ = ["ConversationOrchestrator", "get_orchestrator", "ConversationState"]
