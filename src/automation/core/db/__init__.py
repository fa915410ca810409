"""Database utilities - engine, session, migrations."""

from src.automation.core.db.engine import (
    dispose_engine,
    dispose_sync_engine,
    get_engine,
    get_sync_engine,
)
from src.automation.core.db.migrations import run_migrations_sync
from src.automation.core.db.session import get_session

__all__ = [
    # Engine (async)
    "dispose_engine",
    "get_engine",
    # Engine (sync - for migrations)
    "dispose_sync_engine",
    "get_sync_engine",
    # Session
    "get_session",
    # Migrations
    "run_migrations_sync",
]
