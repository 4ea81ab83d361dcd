"""
Global agent endpoints - cross-project chat stream and daily digest

Chat responses are Server-Sent Events: {token}*, {refs}?, {final}, {done}
or {error}, with `: ping` keepalive comments in between.
"""

import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from loguru import logger

from lumo.agents.types import Scope
from lumo.api.deps import get_digest_service, get_orchestrator_dep, get_user_id
from lumo.api.models import DigestResponse
from lumo.streaming import SseChannel, start_turn_stream
from lumo.utils.dates import parse_day


router = APIRouter(prefix="/api/agent/global", tags=["agent-global"])

GLOBAL_MESSAGE_MAX_CHARS = 6000
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
PERSIST_TRUE = ("1", "true", "yes")

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def sse_response(channel: SseChannel) -> StreamingResponse:
    return StreamingResponse(channel.events(), media_type="text/event-stream", headers=SSE_HEADERS)


def validate_date(date: Optional[str]) -> Optional[str]:
    if date and (not DATE_PATTERN.match(date) or parse_day(date) is None):
        raise HTTPException(status_code=400, detail="date must be YYYY-MM-DD")
    return date


@router.get("/chat/stream")
async def global_chat_stream(
    message: Optional[str] = Query(default=None),
    date: Optional[str] = Query(default=None),
    user_id: str = Depends(get_user_id),
    orchestrator=Depends(get_orchestrator_dep),
):
    """
    Stream a global agent turn as SSE

    Args:
        message: User message (required, <= 6000 chars)
        date: Optional day to focus on (YYYY-MM-DD)
    """
    if not message or len(message) > GLOBAL_MESSAGE_MAX_CHARS:
        raise HTTPException(
            status_code=400,
            detail=f"message is required and must be <= {GLOBAL_MESSAGE_MAX_CHARS} chars",
        )
    validate_date(date)

    scope = Scope.for_user(user_id)
    logger.info(f"Global chat stream started - user={user_id}")

    channel = SseChannel()
    start_turn_stream(
        channel,
        lambda: orchestrator.run_conversation(scope, message, history=[], time_hint=date),
    )
    return sse_response(channel)


@router.get("/digest", response_model=DigestResponse, response_model_by_alias=True)
async def global_digest(
    date: Optional[str] = Query(default=None),
    persist: Optional[str] = Query(default=None),
    user_id: str = Depends(get_user_id),
    digest_service=Depends(get_digest_service),
):
    """
    Generate the daily digest, optionally saving it

    Args:
        date: Day to digest (YYYY-MM-DD, defaults to today UTC)
        persist: "1", "true" or "yes" to save the digest
    """
    validate_date(date)
    scope = Scope.for_user(user_id)
    result = await digest_service.generate_digest(scope, date)

    persisted = False
    digest_id = None
    if persist and persist.lower() in PERSIST_TRUE:
        try:
            digest_id = await digest_service.persist(scope, result)
            persisted = True
        except Exception as e:
            logger.error(f"Failed to persist digest for {result.payload.date}: {e}")

    payload = result.payload
    return DigestResponse(
        date=payload.date,
        markdown=payload.markdown,
        intent=payload.intent,
        sections=payload.sections,
        actions=payload.actions,
        references=payload.references,
        followups=payload.followups,
        guardrails=result.conversation.guardrails,
        persisted=persisted,
        digest_id=digest_id,
    )
