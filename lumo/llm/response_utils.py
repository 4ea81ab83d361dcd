"""
LLM response utilities for handling multi-format model outputs.

Supports both:
- Simple string responses (gpt-4o-mini, gpt-4.1, etc.)
- Structured content blocks with reasoning (o-series and newer models)
"""

from typing import Any, Dict, List
from loguru import logger


def extract_text_from_response(response: Any) -> str:
    """
    Extract text content from LLM response (handles all formats).

    Supports:
    - Simple string: "text here"
    - Structured blocks: [{'type': 'reasoning', ...}, {'type': 'text', 'text': '...'}]
    - LangChain AIMessage with content attribute

    Args:
        response: LLM response (AIMessage, dict, str, or list)

    Returns:
        Extracted text content as string
    """
    content = response.content if hasattr(response, "content") else response

    if not content:
        return ""

    if isinstance(content, str):
        return content

    if isinstance(content, list):
        text_parts = []
        for block in content:
            if isinstance(block, dict):
                if block.get("type") == "text" and "text" in block:
                    text_parts.append(block["text"])
                elif "text" in block and block.get("type") != "reasoning":
                    text_parts.append(block["text"])
            elif isinstance(block, str):
                text_parts.append(block)

        result = "".join(text_parts)
        if result:
            return result

        content_preview = str(content)[:200]
        logger.warning(f"No text blocks found in structured response: {content_preview}")
        return ""

    return str(content)


def extract_tool_calls(response: Any) -> List[Dict[str, Any]]:
    """
    Normalise the tool calls requested by a chat model response.

    Returns a list of {"id", "name", "args"} dicts. Calls without an id get a
    positional one so every call can be answered with a ToolMessage.
    """
    raw_calls = getattr(response, "tool_calls", None) or []
    calls = []
    for index, call in enumerate(raw_calls):
        if not isinstance(call, dict):
            continue
        name = call.get("name")
        if not name:
            continue
        args = call.get("args")
        calls.append({
            "id": call.get("id") or f"call_{index}",
            "name": str(name),
            "args": args if isinstance(args, dict) else {},
        })
    return calls
