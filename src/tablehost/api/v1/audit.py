"""Admin audit log endpoints - platform admins only."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from src.tablehost.api.dependencies import AuditServiceDep, PlatformAdmin
from src.tablehost.schemas.audit import AuditLogListResponse, AuditLogRead

router = APIRouter(prefix="/audit", tags=["audit"])

# Query parameter types
CursorQuery = Annotated[str | None, Query(description="Pagination cursor")]
LimitQuery = Annotated[int, Query(ge=1, le=100, description="Items per page")]
ActionQuery = Annotated[str | None, Query(description="Filter by action type")]
TenantIdQuery = Annotated[UUID | None, Query(description="Filter by tenant ID")]
ActorIdQuery = Annotated[UUID | None, Query(description="Filter by acting principal ID")]


@router.get(
    "/logs",
    response_model=AuditLogListResponse,
    responses={
        200: {
            "description": "List of audit logs",
            "content": {
                "application/json": {
                    "example": {
                        "items": [
                            {
                                "id": "0192b3c4-5d6e-7f80-9a1b-2c3d4e5f6a70",
                                "tenant_id": "0192b3c4-5d6e-7f80-9a1b-2c3d4e5f6a7b",
                                "actor_id": "0192b3c4-5d6e-7f80-9a1b-2c3d4e5f6a71",
                                "action": "owner.email_change",
                                "entity_type": "owner",
                                "entity_id": "0192b3c4-5d6e-7f80-9a1b-2c3d4e5f6a72",
                                "changes": {"email": {"old": "a@x.com", "new": "b@x.com"}},
                                "ip_address": "192.168.1.1",
                                "user_agent": "Mozilla/5.0...",
                                "request_id": "abc-123",
                                "status": "success",
                                "error_message": None,
                                "created_at": "2026-01-01T00:00:00",
                            }
                        ],
                        "next_cursor": "abc123",
                        "has_more": True,
                    }
                }
            },
        },
        403: {"description": "Platform admin access required"},
    },
)
async def list_audit_logs(
    _: PlatformAdmin,
    audit_service: AuditServiceDep,
    cursor: CursorQuery = None,
    limit: LimitQuery = 50,
    tenant_id: TenantIdQuery = None,
    actor_id: ActorIdQuery = None,
    action: ActionQuery = None,
) -> AuditLogListResponse:
    """List audit logs, newest first."""
    logs, next_cursor, has_more = await audit_service.list_logs(
        cursor=cursor,
        limit=limit,
        tenant_id=tenant_id,
        actor_id=actor_id,
        action=action,
    )

    return AuditLogListResponse(
        items=[AuditLogRead.model_validate(log) for log in logs],
        next_cursor=next_cursor,
        has_more=has_more,
    )
