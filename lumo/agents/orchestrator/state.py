"""
Conversation workflow state
"""

from typing import Annotated, Optional, Sequence, TypedDict

from langchain_core.messages import BaseMessage


class ConversationState(TypedDict):
    """State carried between conversation graph nodes"""
    messages: Annotated[Sequence[BaseMessage], "Model-facing messages: instructions, history, turn, tool traffic"]
    next_step: str
    tools_enabled: bool  # False once the tool budget is spent
    draft: Optional[str]  # Last agent reply before the output guardrail
    reply: Optional[str]  # Text returned to the caller
