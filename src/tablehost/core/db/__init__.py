"""Database utilities - engine, session, migrations."""

from src.tablehost.core.db.engine import (
    dispose_engine,
    dispose_sync_engine,
    get_engine,
    get_sync_engine,
)
from src.tablehost.core.db.migrations import run_migrations_async, run_migrations_sync
from src.tablehost.core.db.session import get_session

__all__ = [
    # Engine (async)
    "dispose_engine",
    "get_engine",
    # Engine (sync - for Temporal activities)
    "dispose_sync_engine",
    "get_sync_engine",
    # Session
    "get_session",
    # Migrations
    "run_migrations_async",
    "run_migrations_sync",
]
