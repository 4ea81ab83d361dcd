"""
Turn streaming - replay a finished conversation result as SSE events

Event order per turn: {token}*, {refs}?, {final}, {done: true}; or {error}.
The channel is always closed afterwards.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional

from loguru import logger

from lumo.agents.types import ConversationResult
from lumo.config.settings import settings
from lumo.streaming.sse import SseChannel


def chunk_text(text: str, size: Optional[int] = None) -> List[str]:
    """Consecutive fixed-size slices; joining them gives back the input"""
    size = size or settings.stream_chunk_size
    if size <= 0:
        raise ValueError("chunk size must be positive")
    if not text:
        return []
    return [text[i:i + size] for i in range(0, len(text), size)]


def final_payload(result: ConversationResult) -> dict:
    """The {final} event body: the result without the raw evidence bundle"""
    return result.model_dump(by_alias=True, mode="json", exclude={"retrieval"})


async def stream_turn(
    channel: SseChannel,
    run_turn: Callable[[], Awaitable[ConversationResult]],
    chunk_size: Optional[int] = None,
) -> Optional[ConversationResult]:
    """
    Await the turn and write its events to the channel.

    Returns the result (None on failure). Writes after a client disconnect
    are dropped by the channel; the turn itself still runs to completion.
    """
    try:
        result = await run_turn()

        for chunk in chunk_text(result.reply, chunk_size):
            if not channel.write({"token": chunk}):
                break
        if result.references:
            channel.write({"refs": [ref.to_wire() for ref in result.references]})
        channel.write({"final": final_payload(result)})
        channel.write({"done": True})
        return result
    except Exception as e:
        logger.exception(f"Streaming turn failed: {e}")
        channel.write({"error": str(e) or "Stream failed"})
        return None
    finally:
        channel.close()


def _log_task_outcome(task: "asyncio.Task") -> None:
    if task.cancelled():
        logger.warning("Streaming turn task was cancelled")
        return
    error = task.exception()
    if error is not None:
        logger.opt(exception=error).error(f"Streaming turn task failed: {error}")


def start_turn_stream(
    channel: SseChannel,
    run_turn: Callable[[], Awaitable[ConversationResult]],
    chunk_size: Optional[int] = None,
) -> "asyncio.Task":
    """Run stream_turn as a background task whose failures are logged, not raised"""
    task = asyncio.get_running_loop().create_task(stream_turn(channel, run_turn, chunk_size))
    task.add_done_callback(_log_task_outcome)

    def _on_disconnect() -> None:
        if not task.done():
            logger.info("Client disconnected; turn continues in background")

    channel.on_cancel(_on_disconnect)
    return task
