"""
Defensive parsing of guardrail classifier output.

Model replies are untrusted: every field is read on its own with a safe
default, so a half-valid JSON object still yields a usable decision.
"""

import json
from typing import Any, Dict


def strip_code_fence(raw: str) -> str:
    """Remove a surrounding ```json fence if the model added one"""
    raw = raw.strip()
    if raw.startswith("```"):
        lines = raw.split("\n")
        raw = "\n".join(lines[1:-1] if len(lines) > 2 else lines)
        raw = raw.strip().rstrip("`").strip()
    return raw


def parse_json_object(raw: str) -> Dict[str, Any]:
    """
    Parse a classifier reply into a dict.

    Tolerates a code fence and chatter around the object by falling back to
    the outermost braces.

    Raises:
        ValueError: no JSON object could be recovered
    """
    if not raw or not raw.strip():
        raise ValueError("Empty classifier reply")

    body = strip_code_fence(raw)
    try:
        parsed = json.loads(body)
    except ValueError:
        start = body.find("{")
        end = body.rfind("}")
        if start < 0 or end <= start:
            raise ValueError(f"No JSON object in classifier reply: {body[:120]}")
        parsed = json.loads(body[start:end + 1])

    if not isinstance(parsed, dict):
        raise ValueError(f"Classifier reply is not a JSON object: {type(parsed).__name__}")
    return parsed


def coerce_text(value: Any) -> str:
    """Trimmed string value, or "" for anything that is not a string"""
    if isinstance(value, str):
        return value.strip()
    return ""


def coerce_bool(value: Any) -> bool:
    """Interpret common truthy spellings; anything else is False"""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return False


def coerce_intent(value: Any, allowed, default: str = "general_q") -> str:
    """Lowercased intent if it belongs to the allowed enum, else the default"""
    intent = coerce_text(value).lower()
    return intent if intent in allowed else default
