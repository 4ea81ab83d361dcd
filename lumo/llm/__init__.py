"""
LLM layer - Client, embeddings, and response utilities
"""

from lumo.llm.client import create_llm, create_llm_if_configured, llm_enabled
from lumo.llm.embeddings import EmbeddingService
from lumo.llm.response_utils import (
    extract_text_from_response,
    extract_tool_calls,
)

__all__ = [
    "create_llm",
    "create_llm_if_configured",
    "llm_enabled",
    "EmbeddingService",
    "extract_text_from_response",
    "extract_tool_calls",
]
