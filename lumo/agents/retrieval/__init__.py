"""
Retrieval - evidence bundles for the agent loop
"""

from lumo.agents.retrieval.gateway import (
    RetrievalGateway,
    extract_snippet_text,
    latest_risk_per_project,
    rows_to_snippets,
)

__all__ = ["RetrievalGateway", "extract_snippet_text", "latest_risk_per_project", "rows_to_snippets"]
