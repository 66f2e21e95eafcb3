"""Widget draft persistence (in-progress widget sessions)."""

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.tablehost.core.config import get_settings
from src.tablehost.core.exceptions import NotFoundError, VersionConflictError
from src.tablehost.core.logging import get_logger
from src.tablehost.models import WidgetDraft
from src.tablehost.models.base import utc_now
from src.tablehost.repositories import TenantRepository, WidgetDraftRepository
from src.tablehost.schemas.widget import WidgetDraftSave

logger = get_logger(__name__)


class WidgetDraftService:
    """Save, load and clear drafts keyed by (tenant, widget session).

    Saves are versioned: a client must send the version it last saved, so two
    tabs of the same widget session cannot silently overwrite each other.
    """

    def __init__(
        self,
        tenant_repo: TenantRepository,
        draft_repo: WidgetDraftRepository,
        session: AsyncSession,
    ):
        self.tenant_repo = tenant_repo
        self.draft_repo = draft_repo
        self.session = session

    async def save_draft(
        self, tenant_id: UUID, session_id: str, data: WidgetDraftSave
    ) -> WidgetDraft:
        """Create or update a draft and push its expiry forward.

        Raises:
            NotFoundError: Tenant does not exist or is inactive
            VersionConflictError: expected_version does not match the stored draft
        """
        await self._ensure_tenant(tenant_id)

        now = utc_now()
        expires_at = now + timedelta(hours=get_settings().widget_draft_ttl_hours)

        existing = await self.draft_repo.get(tenant_id, session_id)
        if existing is not None and existing.expires_at <= now:
            await self.draft_repo.delete_for_session(tenant_id, session_id)
            existing = None

        if existing is None:
            if data.expected_version is not None:
                await self.session.rollback()
                raise VersionConflictError("Draft no longer exists")
            return await self._create(tenant_id, session_id, data, expires_at)

        if data.expected_version is None:
            await self.session.rollback()
            raise VersionConflictError(details={"current_version": existing.version})

        updated = await self.draft_repo.update_if_version(
            tenant_id,
            session_id,
            data.expected_version,
            {
                "widget_type": data.widget_type.value,
                "current_step": data.current_step,
                "draft_data": data.draft_data,
                "expires_at": expires_at,
            },
        )
        if updated is None:
            await self.session.rollback()
            raise VersionConflictError(details={"current_version": existing.version})

        await self.session.commit()
        return updated

    async def load_draft(self, tenant_id: UUID, session_id: str) -> WidgetDraft:
        draft = await self.draft_repo.get(tenant_id, session_id)
        if draft is None or draft.expires_at <= utc_now():
            raise NotFoundError("Draft not found")
        return draft

    async def clear_draft(self, tenant_id: UUID, session_id: str) -> bool:
        deleted = await self.draft_repo.delete_for_session(tenant_id, session_id)
        await self.session.commit()
        return deleted

    async def _create(
        self,
        tenant_id: UUID,
        session_id: str,
        data: WidgetDraftSave,
        expires_at: datetime,
    ) -> WidgetDraft:
        draft = WidgetDraft(
            tenant_id=tenant_id,
            session_id=session_id,
            widget_type=data.widget_type.value,
            current_step=data.current_step,
            draft_data=data.draft_data,
            expires_at=expires_at,
        )
        self.draft_repo.add(draft)
        try:
            await self.session.commit()
        except IntegrityError as e:
            # A concurrent save created the draft first
            await self.session.rollback()
            raise VersionConflictError() from e

        logger.debug("Widget draft created", tenant_id=str(tenant_id))
        return draft

    async def _ensure_tenant(self, tenant_id: UUID) -> None:
        tenant = await self.tenant_repo.get_by_id(tenant_id)
        if tenant is None or not tenant.is_active or not tenant.is_completed:
            raise NotFoundError("Tenant not found")
