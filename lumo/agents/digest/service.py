"""
Daily digest service - run the global conversation with a digest prompt
and extract a typed payload from its reply
"""

import asyncio
from typing import Optional

from loguru import logger

from lumo.agents.digest.parsing import build_digest_payload, extract_machine_tail
from lumo.agents.types import DigestResult, Scope
from lumo.utils.dates import normalise_date


def digest_prompt(date: str) -> str:
    return f"Generate my daily digest for {date}: meetings, top risks, 3-7 priorities, and my tasks list."


class DigestService:
    """
    Generates (and optionally persists) daily digests.

    Args:
        orchestrator: ConversationOrchestrator used for the digest turn
        store: WorkspaceStore used by persist() (optional)
    """

    def __init__(self, orchestrator, store=None):
        self.orchestrator = orchestrator
        self.store = store

    async def generate_digest(self, scope: Scope, date: Optional[str] = None) -> DigestResult:
        """
        Run the digest turn for a day (today UTC when missing or invalid).

        Uses the turn's last retrieval for meetings, tasks and risks; when the
        turn retrieved nothing, one facts-only retrieval is made instead.
        """
        day = normalise_date(date)
        conversation = await self.orchestrator.run_conversation(
            scope, digest_prompt(day), history=[], time_hint=day
        )
        tail = extract_machine_tail(conversation.reply)

        retrieval = conversation.retrieval
        if retrieval is None:
            logger.info(f"Digest turn for {day} made no retrieval; fetching facts directly")
            retrieval = await self.orchestrator.gateway.retrieve(scope, "", date=day, intent="daily_digest")

        payload = build_digest_payload(day, conversation, retrieval, tail)
        logger.info(
            f"Generated digest for {day}: overview={len(payload.sections.overview)} "
            f"priorities={len(payload.sections.priorities)} meetings={len(payload.sections.meetings)} "
            f"tasks={len(payload.sections.tasks)} risks={len(payload.sections.risks)}"
        )
        return DigestResult(payload=payload, conversation=conversation, tail=tail)

    async def persist(self, scope: Scope, result: DigestResult) -> str:
        """Save the digest payload; errors propagate to the caller"""
        if self.store is None:
            raise RuntimeError("DigestService has no store to persist to")
        return await asyncio.to_thread(self.store.save_digest, scope.user_id, result.payload.to_wire())
