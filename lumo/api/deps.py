"""
FastAPI dependencies - shared services and caller identity
"""

from typing import Optional

from fastapi import Depends, Header

from lumo.config.settings import settings


def get_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Caller's user id; authentication happens upstream, dev user otherwise"""
    return (x_user_id or "").strip() or settings.dev_user_id


def get_orchestrator_dep():
    from lumo.agents.orchestrator import get_orchestrator
    return get_orchestrator()


def get_store_dep():
    from lumo.infra.store import get_store
    return get_store()


def get_digest_service(
    orchestrator=Depends(get_orchestrator_dep),
    store=Depends(get_store_dep),
):
    from lumo.agents.digest import DigestService
    return DigestService(orchestrator, store)
