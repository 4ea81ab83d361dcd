"""
Digest parsing - pure helpers that turn a digest reply into typed sections

No model calls happen here; everything is deterministic text processing.
"""

import json
import re
from typing import Any, Dict, List, Optional

from lumo.agents.types import (
    ConversationResult,
    DigestMeeting,
    DigestPayload,
    DigestRisk,
    DigestSections,
    DigestTask,
    RetrievalBundle,
)


OVERVIEW_HEADING = "Today's Overview"
PRIORITIES_HEADING = "Top Priorities (Next Steps)"

MAX_MEETINGS = 12
MAX_TASKS = 20

FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]+?)```", re.IGNORECASE)
BULLET_PREFIXES = ("- ", "• ")


def _normalise_heading(value: str) -> str:
    return value.lower().replace("’", "'")


def extract_section_bullets(reply: str, heading: str) -> List[str]:
    """
    Bullets under `## <heading>` until the next `## ` heading.

    Heading match ignores case and typographic apostrophes. A missing
    heading yields an empty list.
    """
    target = _normalise_heading(f"## {heading}")
    bullets: List[str] = []
    collecting = False

    for line in (reply or "").splitlines():
        stripped = line.strip()
        if stripped.startswith("## "):
            if _normalise_heading(stripped) == target:
                collecting = True
                continue
            if collecting:
                break
        if not collecting or not stripped:
            continue
        for prefix in BULLET_PREFIXES:
            if stripped.startswith(prefix):
                bullets.append(stripped[len(prefix):].strip())
                break

    return bullets


def _try_json(text: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(text)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def extract_machine_tail(reply: str) -> Optional[Dict[str, Any]]:
    """
    The JSON object in the first fenced block of the reply.

    Strict JSON first, then the span between the first `{` and the last `}`.
    """
    match = FENCED_BLOCK.search(reply or "")
    if not match:
        return None
    body = match.group(1).strip()
    if not body:
        return None

    parsed = _try_json(body)
    if parsed is not None:
        return parsed

    start = body.find("{")
    end = body.rfind("}")
    if start >= 0 and end > start:
        return _try_json(body[start:end + 1])
    return None


def extract_followups(tail: Optional[Dict[str, Any]]) -> List[str]:
    items = tail.get("followups") if isinstance(tail, dict) else None
    if not isinstance(items, list):
        return []
    return [item.strip() for item in items if isinstance(item, str)]


def build_digest_payload(
    date: str,
    conversation: ConversationResult,
    retrieval: Optional[RetrievalBundle],
    tail: Optional[Dict[str, Any]] = None,
) -> DigestPayload:
    """Merge the reply's markdown sections with the authoritative facts."""
    reply = conversation.reply
    retrieval = retrieval or RetrievalBundle()

    meetings = [
        DigestMeeting(
            id=meeting.id,
            title=meeting.title,
            time=meeting.starts_at,
            project_id=meeting.project_id,
        )
        for meeting in retrieval.meetings[:MAX_MEETINGS]
    ]
    tasks = [
        DigestTask(
            id=task.id,
            title=task.title,
            status=task.status,
            due_date=task.due_date,
            project=task.project_slug,
            project_id=task.project_id,
        )
        for task in retrieval.tasks[:MAX_TASKS]
    ]
    risks = [
        DigestRisk(
            project_id=risk.project_id,
            project=risk.project_slug,
            score=risk.score,
            label=risk.label,
        )
        for risk in retrieval.risks
    ]

    return DigestPayload(
        date=date,
        markdown=reply,
        intent=conversation.intent,
        sections=DigestSections(
            overview=extract_section_bullets(reply, OVERVIEW_HEADING),
            priorities=extract_section_bullets(reply, PRIORITIES_HEADING),
            meetings=meetings,
            tasks=tasks,
            risks=risks,
        ),
        actions=list(conversation.actions),
        references=list(conversation.references),
        followups=extract_followups(tail),
    )
