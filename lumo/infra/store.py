"""
Workspace store - read/write access to items, embeddings, tasks, risks and digests.

All queries are plain SQL over the shared PostgreSQL schema (pgvector for the
embeddings table). Methods are synchronous; async callers run them through
asyncio.to_thread. Timestamps leave the store as ISO-8601 UTC strings.
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import text
from loguru import logger

from lumo.infra.database import Database, get_database
from lumo.utils.errors import RetrievalError


def _iso(value: Any) -> Optional[str]:
    """Render a timestamp column as an ISO-8601 UTC string"""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    return str(value)


def _json_value(value: Any) -> Any:
    """jsonb columns come back decoded from psycopg, text columns do not"""
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return None
    return value


def vector_literal(vector: Sequence[float]) -> str:
    """Format a vector the way pgvector parses it: [0.1,0.2,...]"""
    return "[" + ",".join(str(float(v)) for v in vector) + "]"


class WorkspaceStore:
    """
    Store facade used by retrieval, chat history and digest persistence.

    Args:
        db: Database instance (defaults to the process-wide one)
    """

    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_database()

    # ------------------------------------------------------------------
    # Semantic search
    # ------------------------------------------------------------------

    def search_items(
        self,
        vector: Sequence[float],
        k: int,
        user_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Nearest-neighbour search over item embeddings, closest first.

        Scoped by project when project_id is given, otherwise by owning user.
        Returns raw rows: id, type, title, body, raw, projectId, distance.
        """
        if project_id:
            where = 'i."projectId" = :scope_id'
            scope_id = project_id
        elif user_id:
            where = 'e."userId" = :scope_id AND e."itemId" IS NOT NULL'
            scope_id = user_id
        else:
            raise RetrievalError("search_items needs a project_id or a user_id")

        sql = text(f"""
            SELECT i.id, i.type, i.title, i.body, i.raw, i."projectId" AS project_id,
                   e.vector <-> CAST(:vec AS vector) AS distance
            FROM embeddings e
            JOIN items i ON i.id = e."itemId"
            WHERE {where}
            ORDER BY e.vector <-> CAST(:vec AS vector)
            LIMIT :k
        """)

        try:
            with self.db.session_scope() as session:
                rows = session.execute(
                    sql, {"vec": vector_literal(vector), "scope_id": scope_id, "k": int(k)}
                ).mappings().all()
        except Exception as e:
            raise RetrievalError(f"Vector search failed: {e}") from e

        return [
            {
                "id": row["id"],
                "type": row["type"],
                "title": row["title"],
                "body": row["body"],
                "raw": _json_value(row["raw"]),
                "projectId": row["project_id"],
                "distance": row["distance"],
            }
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Authoritative facts
    # ------------------------------------------------------------------

    def list_open_tasks(
        self,
        user_id: Optional[str] = None,
        project_id: Optional[str] = None,
        limit: int = 50,
    ) -> List[Dict[str, Any]]:
        """
        Open tasks (status other than done) ordered by status, due date, recency.

        Project lists fall back to creation order, user-wide lists to most
        recently updated.
        """
        if project_id:
            where = 't."projectId" = :scope_id'
            scope_id = project_id
            tiebreak = 't."createdAt" ASC'
        elif user_id:
            where = 't."userId" = :scope_id'
            scope_id = user_id
            tiebreak = 't."updatedAt" DESC'
        else:
            raise RetrievalError("list_open_tasks needs a project_id or a user_id")

        sql = text(f"""
            SELECT t.id, t.title, t.status, t."dueDate" AS due_date,
                   t."projectId" AS project_id, p.slug AS project_slug
            FROM tasks t
            LEFT JOIN projects p ON p.id = t."projectId"
            WHERE {where} AND t.status <> 'done'
            ORDER BY t.status ASC, t."dueDate" ASC NULLS LAST, {tiebreak}
            LIMIT :limit
        """)

        with self.db.session_scope() as session:
            rows = session.execute(sql, {"scope_id": scope_id, "limit": int(limit)}).mappings().all()

        return [
            {
                "id": row["id"],
                "title": row["title"],
                "status": row["status"],
                "dueDate": _iso(row["due_date"]),
                "projectId": row["project_id"],
                "projectSlug": row["project_slug"],
            }
            for row in rows
        ]

    def list_calendar_events(self, user_id: str, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        """Calendar items occurring in [start, end), earliest first"""
        sql = text("""
            SELECT id, title, raw, "occurredAt" AS occurred_at, "projectId" AS project_id
            FROM items
            WHERE "userId" = :user_id
              AND type = 'CAL_EVENT'
              AND "occurredAt" >= :start AND "occurredAt" < :end
            ORDER BY "occurredAt" ASC
        """)

        with self.db.session_scope() as session:
            rows = session.execute(sql, {"user_id": user_id, "start": start, "end": end}).mappings().all()

        meetings = []
        for row in rows:
            raw = _json_value(row["raw"]) or {}
            raw_title = raw.get("title") if isinstance(raw, dict) else None
            raw_end = raw.get("end") if isinstance(raw, dict) else None
            meetings.append({
                "id": row["id"],
                "title": row["title"] or raw_title,
                "startsAt": _iso(row["occurred_at"]),
                "endsAt": raw_end if isinstance(raw_end, str) else None,
                "projectId": row["project_id"],
            })
        return meetings

    def list_risk_scores(self, user_id: str) -> List[Dict[str, Any]]:
        """Every risk score row for the user, newest first"""
        sql = text("""
            SELECT r."projectId" AS project_id, p.slug AS project_slug,
                   r.score, r.factors, r."computedAt" AS computed_at
            FROM risk_scores r
            LEFT JOIN projects p ON p.id = r."projectId"
            WHERE r."userId" = :user_id
            ORDER BY r."computedAt" DESC
        """)

        with self.db.session_scope() as session:
            rows = session.execute(sql, {"user_id": user_id}).mappings().all()

        return [
            {
                "projectId": row["project_id"],
                "projectSlug": row["project_slug"],
                "score": float(row["score"]) if row["score"] is not None else 0.0,
                "factors": _json_value(row["factors"]),
                "computedAt": _iso(row["computed_at"]),
            }
            for row in rows
        ]

    def get_project_by_slug(self, slug: str, user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Look up a project by slug (optionally restricted to its owner)"""
        sql = 'SELECT id, "userId" AS user_id, slug, description FROM projects WHERE slug = :slug'
        params: Dict[str, Any] = {"slug": slug}
        if user_id:
            sql += ' AND "userId" = :user_id'
            params["user_id"] = user_id

        with self.db.session_scope() as session:
            row = session.execute(text(sql + " LIMIT 1"), params).mappings().first()

        if row is None:
            return None
        return {
            "id": row["id"],
            "userId": row["user_id"],
            "slug": row["slug"],
            "description": row["description"],
        }

    # ------------------------------------------------------------------
    # Chat history
    # ------------------------------------------------------------------

    def recent_chat_turns(self, project_id: str, limit: int = 9) -> List[Dict[str, str]]:
        """Last `limit` chat turns of a project, oldest first"""
        sql = text("""
            SELECT body, raw
            FROM items
            WHERE "projectId" = :project_id AND raw->>'kind' = 'CHAT'
            ORDER BY "createdAt" DESC
            LIMIT :limit
        """)

        with self.db.session_scope() as session:
            rows = session.execute(sql, {"project_id": project_id, "limit": int(limit)}).mappings().all()

        turns = []
        for row in rows:
            raw = _json_value(row["raw"]) or {}
            role = raw.get("role") if isinstance(raw, dict) else None
            turns.append({
                "role": role if role in ("user", "assistant") else "assistant",
                "content": row["body"] or "",
            })
        turns.reverse()
        return turns

    def append_chat_turn(self, user_id: str, project_id: str, role: str, content: str) -> str:
        """Store one chat turn as a CHAT note item; returns the new item id"""
        item_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        sql = text("""
            INSERT INTO items (id, "userId", "projectId", type, title, body, raw,
                               "occurredAt", "createdAt", "updatedAt")
            VALUES (:id, :user_id, :project_id, 'NOTE', NULL, :body, CAST(:raw AS jsonb),
                    NULL, :now, :now)
        """)

        with self.db.session_scope() as session:
            session.execute(sql, {
                "id": item_id,
                "user_id": user_id,
                "project_id": project_id,
                "body": content,
                "raw": json.dumps({"kind": "CHAT", "role": role}),
                "now": now,
            })

        logger.debug(f"Stored {role} chat turn for project {project_id}")
        return item_id

    # ------------------------------------------------------------------
    # Digests
    # ------------------------------------------------------------------

    def save_digest(self, user_id: str, payload: Dict[str, Any]) -> str:
        """
        Persist a generated daily digest.

        payload is the camelCase digest dict; its markdown becomes the summary
        and the whole payload is kept as jsonb.
        """
        digest_id = str(uuid.uuid4())
        sql = text("""
            INSERT INTO digests (id, "userId", date, summary, payload, "createdAt")
            VALUES (:id, :user_id, CAST(:date AS date), :summary, CAST(:payload AS jsonb), :now)
        """)

        with self.db.session_scope() as session:
            session.execute(sql, {
                "id": digest_id,
                "user_id": user_id,
                "date": payload.get("date"),
                "summary": payload.get("markdown") or "",
                "payload": json.dumps(payload, default=str),
                "now": datetime.now(timezone.utc),
            })

        logger.info(f"Saved daily digest {payload.get('date')} for user {user_id}")
        return digest_id


_store_instance = None


def get_store() -> WorkspaceStore:
    """Get or create the global store instance"""
    global _store_instance
    if _store_instance is None:
        _store_instance = WorkspaceStore()
    return _store_instance
