"""
Output guardrail - approve, patch or veto the agent's draft reply
"""

import json
from typing import Optional

from langchain_core.messages import HumanMessage, SystemMessage
from loguru import logger

from lumo.agents.guardrails.parsing import coerce_bool, coerce_text, parse_json_object
from lumo.agents.guardrails.prompts import output_guardrail_prompt
from lumo.agents.runtime import RuntimeContext
from lumo.agents.types import OutputGuardrailDecision
from lumo.config.settings import settings
from lumo.llm.response_utils import extract_text_from_response


class OutputGuardrail:
    """
    Validator run on every draft before it is returned.

    Args:
        llm: Chat model with ainvoke(), or None when no model is configured
        enabled: Switch off to always pass the draft through (defaults to settings)
    """

    def __init__(self, llm=None, enabled: Optional[bool] = None):
        self.llm = llm
        self.enabled = settings.enable_output_guardrail if enabled is None else enabled

    @property
    def active(self) -> bool:
        return self.enabled and self.llm is not None

    def _evidence(self, draft: str, runtime: RuntimeContext) -> dict:
        return {
            "scope": runtime.scope.kind,
            "projectSlug": runtime.scope.project_slug,
            "intent": runtime.intent,
            "userPrompt": runtime.latest_prompt,
            "draft": draft,
            "context": [bundle.to_wire() for bundle in runtime.retrieval_calls],
            "proposals": runtime.proposals_snapshot(),
        }

    async def validate(self, draft: str, runtime: RuntimeContext) -> OutputGuardrailDecision:
        """
        Check the draft against the turn's evidence and proposals.

        Never raises: classifier outages pass the draft through unchanged.
        """
        if not self.active:
            return OutputGuardrailDecision(tripwire=False, message="Guardrail disabled", patched=draft)

        try:
            response = await self.llm.ainvoke([
                SystemMessage(content=output_guardrail_prompt(runtime.scope)),
                HumanMessage(content=json.dumps(self._evidence(draft, runtime), indent=2, default=str)),
            ])
            parsed = parse_json_object(extract_text_from_response(response))
        except Exception as e:
            logger.error(f"Output guardrail failed for {runtime.scope.label}; using draft: {e}")
            return OutputGuardrailDecision(tripwire=False, message="Guardrail error", patched=draft)

        # Older classifier prompts answered with patched_reply
        patched = coerce_text(parsed.get("patched")) or coerce_text(parsed.get("patched_reply"))
        decision = OutputGuardrailDecision(
            tripwire=coerce_bool(parsed.get("tripwire")),
            message=coerce_text(parsed.get("message")) or None,
            patched=patched or draft,
        )

        logger.info(f"Output guardrail [{runtime.scope.label}]: tripwire={decision.tripwire} patched={decision.patched != draft}")
        return decision
