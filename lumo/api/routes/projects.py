"""
Project agent endpoint - per-project chat stream with stored history
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger

from lumo.agents.types import Scope
from lumo.api.deps import get_orchestrator_dep, get_store_dep, get_user_id
from lumo.api.routes.agent import sse_response
from lumo.config.settings import settings
from lumo.streaming import SseChannel, start_turn_stream


router = APIRouter(prefix="/api/projects", tags=["agent-project"])

PROJECT_MESSAGE_MAX_CHARS = 5000


async def _append_turn(store, user_id: str, project_id: str, role: str, content: str) -> None:
    """Chat history is best effort; a failed write never breaks the turn"""
    try:
        await asyncio.to_thread(store.append_chat_turn, user_id, project_id, role, content)
    except Exception as e:
        logger.error(f"Failed to store {role} chat turn for project {project_id}: {e}")


@router.get("/{slug}/agent/chat/stream")
async def project_chat_stream(
    slug: str,
    message: Optional[str] = Query(default=None),
    user_id: str = Depends(get_user_id),
    orchestrator=Depends(get_orchestrator_dep),
    store=Depends(get_store_dep),
):
    """
    Stream a project agent turn as SSE

    Loads the project's recent chat turns as history and stores the new
    user and assistant turns.
    """
    if not message or len(message) > PROJECT_MESSAGE_MAX_CHARS:
        raise HTTPException(
            status_code=400,
            detail=f"message is required and must be <= {PROJECT_MESSAGE_MAX_CHARS} chars",
        )

    # Owner-filtered lookup; another user's project is indistinguishable from a missing one
    project = await asyncio.to_thread(store.get_project_by_slug, slug, user_id)
    if not project:
        raise HTTPException(status_code=404, detail=f"Project '{slug}' not found")

    try:
        history = await asyncio.to_thread(store.recent_chat_turns, project["id"], settings.chat_history_turns)
    except Exception as e:
        logger.error(f"Failed to load chat history for project {slug}: {e}")
        history = []

    scope = Scope.for_project(
        user_id=user_id,
        project_id=project["id"],
        project_slug=project.get("slug") or slug,
        project_description=project.get("description"),
    )
    logger.info(f"Project chat stream started - project={slug}, user={user_id}, history={len(history)}")

    async def run_turn():
        await _append_turn(store, user_id, project["id"], "user", message)
        result = await orchestrator.run_conversation(scope, message, history=history)
        await _append_turn(store, user_id, project["id"], "assistant", result.reply)
        return result

    channel = SseChannel()
    start_turn_stream(channel, run_turn)
    return sse_response(channel)
