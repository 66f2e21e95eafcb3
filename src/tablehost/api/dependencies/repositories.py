"""Repository factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.tablehost.api.dependencies.db import DBSession
from src.tablehost.api.dependencies.tenant import ScopedDBSession
from src.tablehost.repositories import (
    ProfileRepository,
    TenantAccessRepository,
    TenantRepository,
    WidgetConfigRepository,
    WidgetDraftRepository,
    WidgetEventRepository,
)


def get_tenant_repository(session: DBSession) -> TenantRepository:
    """Get tenant repository with a service session."""
    return TenantRepository(session)


def get_tenant_access_repository(session: DBSession) -> TenantAccessRepository:
    """Get access mapping repository with a service session."""
    return TenantAccessRepository(session)


def get_profile_repository(session: DBSession) -> ProfileRepository:
    """Get profile repository with a service session."""
    return ProfileRepository(session)


def get_widget_event_repository(session: DBSession) -> WidgetEventRepository:
    """Get widget event repository with a service session (public ingestion)."""
    return WidgetEventRepository(session)


def get_widget_draft_repository(session: DBSession) -> WidgetDraftRepository:
    """Get widget draft repository with a service session (public drafts)."""
    return WidgetDraftRepository(session)


def get_scoped_widget_config_repository(session: ScopedDBSession) -> WidgetConfigRepository:
    """Get widget config repository filtered by the caller's tenant access."""
    return WidgetConfigRepository(session)


def get_scoped_widget_event_repository(session: ScopedDBSession) -> WidgetEventRepository:
    """Get widget event repository filtered by the caller's tenant access."""
    return WidgetEventRepository(session)


TenantRepo = Annotated[TenantRepository, Depends(get_tenant_repository)]
TenantAccessRepo = Annotated[TenantAccessRepository, Depends(get_tenant_access_repository)]
ProfileRepo = Annotated[ProfileRepository, Depends(get_profile_repository)]
WidgetEventRepo = Annotated[WidgetEventRepository, Depends(get_widget_event_repository)]
WidgetDraftRepo = Annotated[WidgetDraftRepository, Depends(get_widget_draft_repository)]
ScopedWidgetConfigRepo = Annotated[
    WidgetConfigRepository, Depends(get_scoped_widget_config_repository)
]
ScopedWidgetEventRepo = Annotated[
    WidgetEventRepository, Depends(get_scoped_widget_event_repository)
]
