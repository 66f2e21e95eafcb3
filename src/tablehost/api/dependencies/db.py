"""Database session dependencies."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.tablehost.core.db import get_session


async def get_db_session() -> AsyncGenerator[AsyncSession]:
    """Service session: sees every tenant.

    Used for provisioning, platform administration and public widget
    ingestion. Principal-facing tenant data goes through ScopedDBSession.
    """
    async with get_session() as session:
        yield session


DBSession = Annotated[AsyncSession, Depends(get_db_session)]
