"""
Server-Sent Events channel with keepalive and cooperative cancellation

Producers write JSON events or comments; the HTTP layer iterates events()
and sends the encoded frames. A closed or cancelled channel silently drops
further writes, so a producer never fails because the client went away.
"""

import asyncio
import json
from typing import Any, AsyncIterator, Callable, List, Optional

from loguru import logger

from lumo.config.settings import settings


_CLOSED = object()


class SseChannel:
    """
    Cancellable write sink for one SSE response.

    Args:
        ping_seconds: Keepalive interval (defaults to settings.sse_ping_seconds; 0 disables)
    """

    def __init__(self, ping_seconds: Optional[float] = None):
        self.ping_seconds = settings.sse_ping_seconds if ping_seconds is None else ping_seconds
        self._queue: "asyncio.Queue[Any]" = asyncio.Queue()
        self._closed = False
        self._cancelled = False
        self._cancel_callbacks: List[Callable[[], Any]] = []
        self._keepalive_task: Optional[asyncio.Task] = None

        # Initial comment primes proxies and the browser's EventSource
        self.comment("connected")

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def open(self) -> bool:
        return not (self._closed or self._cancelled)

    def _put(self, frame: str) -> bool:
        if not self.open:
            return False
        self._queue.put_nowait(frame)
        return True

    def write(self, data: Any) -> bool:
        """Queue a `data: <json>` event; False when the channel is no longer open"""
        return self._put(f"data: {json.dumps(data, default=str)}\n\n")

    def comment(self, text: str) -> bool:
        return self._put(f": {text}\n\n")

    def ping(self) -> bool:
        return self.comment("ping")

    def start(self) -> None:
        """Start the keepalive task (needs a running event loop)"""
        if self._keepalive_task is None and self.ping_seconds and self.ping_seconds > 0 and self.open:
            self._keepalive_task = asyncio.get_running_loop().create_task(self._keepalive())

    async def _keepalive(self) -> None:
        while self.open:
            await asyncio.sleep(self.ping_seconds)
            self.ping()

    def _stop_keepalive(self) -> None:
        if self._keepalive_task is not None and not self._keepalive_task.done():
            self._keepalive_task.cancel()
        self._keepalive_task = None

    def close(self) -> None:
        """End the stream once queued frames are sent"""
        if self._closed:
            return
        was_open = self.open
        self._closed = True
        self._stop_keepalive()
        if was_open:
            self._queue.put_nowait(_CLOSED)

    def cancel(self) -> None:
        """The consumer went away: drop everything and notify listeners"""
        if self._cancelled:
            return
        was_open = self.open
        self._cancelled = True
        self._stop_keepalive()
        if was_open:
            self._queue.put_nowait(_CLOSED)

        callbacks, self._cancel_callbacks = self._cancel_callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.error(f"SSE cancel callback failed: {e}")

    def on_cancel(self, callback: Callable[[], Any]) -> None:
        """Register a callback for client disconnect (runs at once if already cancelled)"""
        if self._cancelled:
            callback()
        else:
            self._cancel_callbacks.append(callback)

    async def events(self) -> AsyncIterator[str]:
        """Encoded frames in write order, until the channel closes"""
        self.start()
        try:
            while True:
                frame = await self._queue.get()
                if frame is _CLOSED:
                    break
                yield frame
        finally:
            # Leaving early (client disconnect) cancels the channel
            if not self._closed:
                logger.info("SSE consumer disconnected; cancelling channel")
                self.cancel()
            self._stop_keepalive()
