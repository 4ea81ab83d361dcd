"""
Streaming - SSE channel and turn transport
"""

from lumo.streaming.sse import SseChannel
from lumo.streaming.transport import chunk_text, start_turn_stream, stream_turn

__all__ = ["SseChannel", "chunk_text", "start_turn_stream", "stream_turn"]
