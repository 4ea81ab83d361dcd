"""
Pydantic models for the HTTP API
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from lumo.agents.types import (
    DigestSections,
    GuardrailReport,
    ProposedAction,
    Reference,
    WireModel,
)


class DigestResponse(WireModel):
    """
    Daily digest returned by GET /api/agent/global/digest

    Attributes:
        persisted: True only when the digest was actually saved
    """
    date: str
    markdown: str
    intent: str
    sections: DigestSections
    actions: List[ProposedAction] = Field(default_factory=list)
    references: List[Reference] = Field(default_factory=list)
    followups: List[str] = Field(default_factory=list)
    guardrails: GuardrailReport
    persisted: bool = False
    digest_id: Optional[str] = None


class HealthResponse(BaseModel):
    """
    Health check response

    Attributes:
        status: Service health status
        service: Service name
        version: API version
        model_enabled: Whether a language model is configured
    """
    status: str = Field(..., description="Health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="API version")
    model_enabled: bool = Field(..., description="Language model configured")
