"""Shared database utilities for activities."""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import text
from sqlmodel import Session

from src.tablehost.core.db import get_sync_engine
from src.tablehost.core.isolation import RLS_BYPASS_SETTING


@contextmanager
def service_session() -> Iterator[Session]:
    """Synchronous session that sees every tenant.

    The bypass is transaction-local, so it ends with the first commit or
    rollback. Activities do their work in a single transaction.
    """
    with Session(get_sync_engine()) as session:
        session.execute(
            text("SELECT set_config(:name, 'on', true)").bindparams(name=RLS_BYPASS_SETTING)
        )
        yield session
