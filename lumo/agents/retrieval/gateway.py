"""
Retrieval Gateway - evidence bundle for a query within a scope

Combines two halves, fetched concurrently:
1. Semantic snippets: embed the query, nearest-neighbour search, distance cutoff
2. Authoritative facts: open tasks (and, globally, today's meetings and risks)

Each half isolates its own failures so a broken embedding call never hides
the task list and vice versa.
"""

import asyncio
import math
import re
from typing import Any, Awaitable, Dict, List, Optional, Tuple, Type, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from lumo.agents.types import (
    MeetingSummary,
    Reference,
    RetrievalBundle,
    RiskSummary,
    Scope,
    Snippet,
    TaskSummary,
)
from lumo.config.settings import settings
from lumo.utils.dates import utc_day_window


TASK_MENTION = re.compile(r"task|todo|action", re.IGNORECASE)

ModelT = TypeVar("ModelT", bound=BaseModel)


def extract_snippet_text(row: Dict[str, Any], max_chars: Optional[int] = None) -> Optional[str]:
    """
    Pick the most useful text of an item row.

    Priority: raw.markdown, raw.text, raw.lines joined, body, title.
    """
    max_chars = max_chars or settings.snippet_max_chars
    raw = row.get("raw") if isinstance(row.get("raw"), dict) else {}

    lines = raw.get("lines")
    joined = "\n".join(str(line) for line in lines) if isinstance(lines, list) else None

    candidates = (
        raw.get("markdown") if isinstance(raw.get("markdown"), str) else None,
        raw.get("text") if isinstance(raw.get("text"), str) else None,
        joined,
        row.get("body"),
        row.get("title"),
    )
    for candidate in candidates:
        if candidate:
            return str(candidate)[:max_chars]
    return None


def rows_to_snippets(
    rows: List[Dict[str, Any]],
    cutoff: Optional[float] = None,
) -> Tuple[List[Snippet], List[Reference]]:
    """Apply the distance cutoff and build snippets plus their references"""
    cutoff = settings.retrieval_distance_cutoff if cutoff is None else cutoff
    snippets: List[Snippet] = []
    references: List[Reference] = []

    for row in rows:
        try:
            distance = float(row.get("distance"))
        except (TypeError, ValueError):
            continue
        if not math.isfinite(distance) or distance > cutoff:
            continue

        text = extract_snippet_text(row)
        if not text:
            continue

        snippets.append(Snippet(
            item_id=row["id"],
            kind=row.get("type") or "UNKNOWN",
            title=row.get("title"),
            text=text,
            distance=distance,
            project_id=row.get("projectId"),
        ))
        references.append(Reference(
            item_id=row["id"],
            confidence=max(0.0, 1.0 - distance),
            project_id=row.get("projectId"),
        ))

    return snippets, references


def validate_rows(model: Type[ModelT], rows: List[Dict[str, Any]], label: str) -> List[ModelT]:
    """Validate store rows one by one, dropping (and logging) malformed ones"""
    valid: List[ModelT] = []
    for row in rows:
        try:
            valid.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning(f"Skipping malformed {label} row {row.get('id')}: {e.error_count()} error(s)")
    return valid


def latest_risk_per_project(rows: List[Dict[str, Any]]) -> List[RiskSummary]:
    """Rows arrive newest first; keep the first valid one seen for each project"""
    latest: Dict[str, RiskSummary] = {}
    for row in rows:
        project_id = row.get("projectId")
        if not project_id or project_id in latest:
            continue
        try:
            latest[project_id] = RiskSummary(
                project_id=project_id,
                project_slug=row.get("projectSlug"),
                score=row.get("score") or 0.0,
                label=_risk_label(row.get("factors")),
                computed_at=row.get("computedAt"),
            )
        except ValidationError as e:
            logger.warning(f"Skipping malformed risk row for project {project_id}: {e.error_count()} error(s)")
    return list(latest.values())


def _risk_label(factors: Any) -> Optional[str]:
    if not isinstance(factors, dict):
        return None
    for key in ("label", "reason"):
        value = factors.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class RetrievalGateway:
    """
    Builds RetrievalBundles for the agent loop and the digest extractor.

    Args:
        store: WorkspaceStore (sync methods, run in worker threads)
        embeddings: EmbeddingService, or None when embeddings are unavailable
    """

    def __init__(self, store, embeddings=None):
        self.store = store
        self.embeddings = embeddings

    def resolve_k(self, scope: Scope, k: Optional[int]) -> int:
        default = settings.global_top_k if scope.is_global else settings.project_top_k
        if not k or k <= 0:
            return default
        return max(1, min(int(k), settings.retrieval_max_k))

    async def retrieve(
        self,
        scope: Scope,
        query: str,
        k: Optional[int] = None,
        date: Optional[str] = None,
        intent: Optional[str] = None,
    ) -> RetrievalBundle:
        """
        Fetch the evidence bundle for a query.

        Args:
            scope: Project or global scope
            query: Free-text query (blank skips the semantic half)
            k: Neighbour count (defaults per scope, clamped to 1..retrieval_max_k)
            date: Day for global meetings (YYYY-MM-DD, today when absent)
            intent: Classified intent (project scope fetches tasks for task_query)

        Returns:
            RetrievalBundle; never raises for infrastructure failures
        """
        k = self.resolve_k(scope, k)

        (snippets, references), facts = await asyncio.gather(
            self._semantic(scope, query or "", k),
            self._facts(scope, query or "", date, intent),
        )

        bundle = RetrievalBundle(snippets=snippets, references=references, **facts)
        logger.info(
            f"Retrieval [{scope.label}] k={k}: snippets={len(bundle.snippets)} tasks={len(bundle.tasks)} "
            f"meetings={len(bundle.meetings)} risks={len(bundle.risks)}"
        )
        return bundle

    # ------------------------------------------------------------------
    # Semantic half
    # ------------------------------------------------------------------

    async def _semantic(self, scope: Scope, query: str, k: int) -> Tuple[List[Snippet], List[Reference]]:
        if not query.strip():
            return [], []
        if self.embeddings is None:
            logger.warning("Embeddings unavailable; skipping semantic retrieval")
            return [], []

        try:
            vectors = await self.embeddings.aembed_texts([query])
        except Exception as e:
            logger.error(f"Query embedding failed: {e}")
            return [], []

        vector = vectors[0] if vectors else None
        if not vector or len(vector) != settings.embedding_dimensions:
            logger.warning(f"Invalid query embedding length={len(vector) if vector else 0}")
            return [], []

        try:
            if scope.is_global:
                rows = await asyncio.to_thread(self.store.search_items, vector, k, user_id=scope.user_id)
            else:
                rows = await asyncio.to_thread(self.store.search_items, vector, k, project_id=scope.project_id)
        except Exception as e:
            logger.error(f"Vector search failed for {scope.label}: {e}")
            return [], []

        return rows_to_snippets(rows)

    # ------------------------------------------------------------------
    # Facts half
    # ------------------------------------------------------------------

    async def _safe(self, label: str, call: Awaitable[List[Any]]) -> List[Any]:
        try:
            return await call
        except Exception as e:
            logger.error(f"Fact lookup '{label}' failed: {e}")
            return []

    async def _facts(self, scope: Scope, query: str, date: Optional[str], intent: Optional[str]) -> Dict[str, list]:
        if not scope.is_global:
            if intent != "task_query" and not TASK_MENTION.search(query):
                return {"tasks": []}
            rows = await self._safe("tasks", asyncio.to_thread(
                self.store.list_open_tasks, project_id=scope.project_id, limit=settings.project_task_limit
            ))
            return {"tasks": self._tasks(rows)}

        start, end = utc_day_window(date)
        task_rows, meeting_rows, risk_rows = await asyncio.gather(
            self._safe("tasks", asyncio.to_thread(
                self.store.list_open_tasks, user_id=scope.user_id, limit=settings.global_task_limit
            )),
            self._safe("meetings", asyncio.to_thread(self.store.list_calendar_events, scope.user_id, start, end)),
            self._safe("risks", asyncio.to_thread(self.store.list_risk_scores, scope.user_id)),
        )
        return {
            "tasks": self._tasks(task_rows),
            "meetings": validate_rows(MeetingSummary, meeting_rows, "meeting"),
            "risks": latest_risk_per_project(risk_rows),
        }

    def _tasks(self, rows: List[Dict[str, Any]]) -> List[TaskSummary]:
        # Done tasks never reach the bundle, whatever the store returns
        open_rows = [row for row in rows if str(row.get("status", "")).lower() != "done"]
        return validate_rows(TaskSummary, open_rows, "task")
