"""
Configuration layer - Settings and database config
"""

from lumo.config.settings import settings, DatabaseConfig, PROJECT_ROOT

__all__ = [
    "settings",
    "DatabaseConfig",
    "PROJECT_ROOT",
]
