"""
Input guardrail - classify, rewrite or veto the latest user message
"""

import json
import re
from typing import Optional, Sequence

from langchain_core.messages import HumanMessage, SystemMessage
from loguru import logger

from lumo.agents.guardrails.parsing import coerce_bool, coerce_intent, coerce_text, parse_json_object
from lumo.agents.guardrails.prompts import input_guardrail_prompt
from lumo.agents.types import ConversationTurn, InputGuardrailDecision, Scope
from lumo.config.settings import settings
from lumo.llm.response_utils import extract_text_from_response


# Tried in order; a rule is skipped when its intent is not in the scope's enum
PROJECT_INTENT_RULES = (
    ("status", re.compile(r"status|progress|update")),
    ("plan", re.compile(r"plan|roadmap|next step")),
    ("task_query", re.compile(r"task|todo|action")),
    ("meeting_prep", re.compile(r"meeting|prep|agenda")),
)

GLOBAL_INTENT_RULES = (
    ("daily_digest", re.compile(r"digest|summary|overview")),
    ("task_query", re.compile(r"task|todo|action")),
    ("plan", re.compile(r"plan|roadmap|strategy")),
    ("status", re.compile(r"status|progress|update")),
)


def heuristic_intent(message: str, allowed: Sequence[str]) -> str:
    """Keyword intent used whenever the classifier is unavailable"""
    lower = (message or "").lower()
    rules = GLOBAL_INTENT_RULES if "daily_digest" in allowed else PROJECT_INTENT_RULES
    for intent, pattern in rules:
        if intent in allowed and pattern.search(lower):
            return intent
    return "general_q"


class InputGuardrail:
    """
    Gate in front of the agent loop.

    Args:
        llm: Chat model with ainvoke(), or None when no model is configured
        enabled: Switch off to always pass through (defaults to settings)
    """

    def __init__(self, llm=None, enabled: Optional[bool] = None):
        self.llm = llm
        self.enabled = settings.enable_input_guardrail if enabled is None else enabled

    @property
    def active(self) -> bool:
        return self.enabled and self.llm is not None

    def _passthrough(self, scope: Scope, message: str, note: str) -> InputGuardrailDecision:
        return InputGuardrailDecision(
            tripwire=False,
            message=note,
            rewritten=message,
            intent=heuristic_intent(message, scope.intents),
        )

    def _serialise_history(self, history: Sequence[ConversationTurn]):
        turns = list(history)[-settings.guardrail_history_turns:] if settings.guardrail_history_turns else []
        return [
            {"role": turn.role, "content": turn.content[:settings.guardrail_history_chars]}
            for turn in turns
        ]

    async def evaluate(
        self,
        scope: Scope,
        latest_message: str,
        history: Sequence[ConversationTurn] = (),
        time_hint: Optional[str] = None,
    ) -> InputGuardrailDecision:
        """
        Decide whether the latest message may reach the agent.

        Never raises: classifier outages fail open with the heuristic intent.
        """
        if not self.active:
            logger.warning(f"Input guardrail bypassed for {scope.label} (disabled or no model)")
            return self._passthrough(scope, latest_message, "Guardrail disabled; passing through.")

        payload = {
            "scope": scope.kind,
            "projectId": scope.project_id,
            "projectSlug": scope.project_slug,
            "userPrompt": latest_message,
            "timeHint": time_hint,
            "lastTurns": self._serialise_history(history),
        }

        try:
            response = await self.llm.ainvoke([
                SystemMessage(content=input_guardrail_prompt(scope)),
                HumanMessage(content=json.dumps(payload, indent=2)),
            ])
            parsed = parse_json_object(extract_text_from_response(response))
        except Exception as e:
            logger.error(f"Input guardrail failed for {scope.label}; continuing: {e}")
            return self._passthrough(scope, latest_message, "Guardrail error; continuing.")

        tripwire = coerce_bool(parsed.get("tripwire"))
        message = coerce_text(parsed.get("message")) or ("Request blocked" if tripwire else "OK")
        decision = InputGuardrailDecision(
            tripwire=tripwire,
            message=message,
            rewritten=coerce_text(parsed.get("rewritten")) or latest_message,
            intent=coerce_intent(parsed.get("intent"), scope.intents),
        )

        logger.info(f"Input guardrail [{scope.label}]: tripwire={decision.tripwire} intent={decision.intent}")
        return decision
