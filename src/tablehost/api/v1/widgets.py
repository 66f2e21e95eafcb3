"""Widget endpoints.

Dashboard routes under ``/tenants/{tenant_id}/widgets`` run on the caller's
scoped session, so the row-level policy limits them to accessible tenants.
Public routes under ``/widgets`` are called by embedded widgets without
credentials and are rate limited per client IP.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Request, Response, status

from src.tablehost.api.dependencies import (
    AccessibleTenant,
    CurrentPrincipal,
    WidgetAnalyticsServiceDep,
    WidgetConfigServiceDep,
    WidgetDraftServiceDep,
    WidgetEventServiceDep,
)
from src.tablehost.core.rate_limit import limiter, widget_event_limit
from src.tablehost.models import WidgetType
from src.tablehost.schemas.widget import (
    AnalyticsTimeRange,
    WidgetAnalyticsSummary,
    WidgetConfigRead,
    WidgetConfigUpdate,
    WidgetDraftRead,
    WidgetDraftSave,
    WidgetEventAccepted,
    WidgetEventCreate,
)

router = APIRouter(prefix="/tenants/{tenant_id}/widgets", tags=["widgets"])
public_router = APIRouter(prefix="/widgets", tags=["widgets-public"])

SessionIdPath = Annotated[str, Path(min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_-]+$")]


@router.get("", response_model=list[WidgetConfigRead])
async def list_widget_configs(
    tenant: AccessibleTenant,
    service: WidgetConfigServiceDep,
) -> list[WidgetConfigRead]:
    """List every widget configuration of the tenant."""
    configs = await service.list_configs(tenant.id)
    return [WidgetConfigRead.model_validate(config) for config in configs]


@router.get(
    "/{widget_type}/config",
    response_model=WidgetConfigRead,
    responses={404: {"description": "Widget configuration not found"}},
)
async def get_widget_config(
    widget_type: WidgetType,
    tenant: AccessibleTenant,
    service: WidgetConfigServiceDep,
) -> WidgetConfigRead:
    config = await service.get_config(tenant.id, widget_type)
    return WidgetConfigRead.model_validate(config)


@router.put(
    "/{widget_type}/config",
    response_model=WidgetConfigRead,
    responses={
        404: {"description": "Widget configuration not found"},
        409: {"description": "Configuration changed since expected_version"},
        422: {"description": "Configuration does not match the widget schema"},
    },
)
async def update_widget_config(
    widget_type: WidgetType,
    update: WidgetConfigUpdate,
    tenant: AccessibleTenant,
    principal: CurrentPrincipal,
    service: WidgetConfigServiceDep,
) -> WidgetConfigRead:
    """Replace a widget configuration.

    Send the `version` you last read as `expected_version`; a stale version
    is rejected with `VERSION_CONFLICT`. Subscribers of the tenant's change
    channel are notified of the new version.
    """
    config = await service.update_config(tenant.id, widget_type, update, actor_id=principal.id)
    return WidgetConfigRead.model_validate(config)


@router.get("/{widget_type}/analytics", response_model=WidgetAnalyticsSummary)
async def get_widget_analytics(
    widget_type: WidgetType,
    tenant: AccessibleTenant,
    service: WidgetAnalyticsServiceDep,
    time_range: Annotated[
        AnalyticsTimeRange, Query(description="Window to summarize")
    ] = AnalyticsTimeRange.SEVEN_DAYS,
) -> WidgetAnalyticsSummary:
    """Event summary for one widget.

    With no events in the window, `has_data` is false and every metric is null.
    """
    return await service.get_summary(tenant.id, widget_type, time_range)


@public_router.post(
    "/events",
    response_model=WidgetEventAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        404: {"description": "Tenant not found"},
        429: {"description": "Rate limit exceeded"},
    },
)
@limiter.limit(widget_event_limit)
async def record_widget_event(
    request: Request,
    event: WidgetEventCreate,
    service: WidgetEventServiceDep,
) -> WidgetEventAccepted:
    """Record an event from an embedded widget."""
    record = await service.record_event(event)
    return WidgetEventAccepted(id=record.id)


@public_router.get(
    "/drafts/{tenant_id}/{session_id}",
    response_model=WidgetDraftRead,
    responses={404: {"description": "Draft not found or expired"}},
)
@limiter.limit(widget_event_limit)
async def load_widget_draft(
    request: Request,
    tenant_id: UUID,
    session_id: SessionIdPath,
    service: WidgetDraftServiceDep,
) -> WidgetDraftRead:
    draft = await service.load_draft(tenant_id, session_id)
    return WidgetDraftRead.model_validate(draft)


@public_router.put(
    "/drafts/{tenant_id}/{session_id}",
    response_model=WidgetDraftRead,
    responses={
        404: {"description": "Tenant not found"},
        409: {"description": "Draft changed since expected_version"},
    },
)
@limiter.limit(widget_event_limit)
async def save_widget_draft(
    request: Request,
    tenant_id: UUID,
    session_id: SessionIdPath,
    data: WidgetDraftSave,
    service: WidgetDraftServiceDep,
) -> WidgetDraftRead:
    """Create or update a draft. Omit `expected_version` only when creating."""
    draft = await service.save_draft(tenant_id, session_id, data)
    return WidgetDraftRead.model_validate(draft)


@public_router.delete(
    "/drafts/{tenant_id}/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
@limiter.limit(widget_event_limit)
async def clear_widget_draft(
    request: Request,
    tenant_id: UUID,
    session_id: SessionIdPath,
    service: WidgetDraftServiceDep,
) -> Response:
    await service.clear_draft(tenant_id, session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
