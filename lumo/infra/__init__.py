"""
Infrastructure layer - Database and workspace store
"""

from lumo.infra.database import Database, close_database, get_database
from lumo.infra.store import WorkspaceStore, get_store

__all__ = [
    "Database",
    "get_database",
    "close_database",
    "WorkspaceStore",
    "get_store",
]
