"""Widget configuration service."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.tablehost.core.exceptions import InvalidRequestError, NotFoundError, VersionConflictError
from src.tablehost.core.logging import get_logger
from src.tablehost.core.realtime import publish_widget_config_change
from src.tablehost.models import AuditAction, WidgetConfig, WidgetType
from src.tablehost.repositories import WidgetConfigRepository
from src.tablehost.schemas.widget import WidgetConfigUpdate
from src.tablehost.services.audit_service import AuditService

logger = get_logger(__name__)


class WidgetConfigService:
    """Reads and updates widget configuration.

    Expects a principal-scoped session: rows of tenants the caller cannot
    access are invisible, so they surface as NotFoundError.
    """

    def __init__(
        self,
        config_repo: WidgetConfigRepository,
        audit_service: AuditService,
        session: AsyncSession,
    ):
        self.config_repo = config_repo
        self.audit_service = audit_service
        self.session = session

    async def list_configs(self, tenant_id: UUID) -> list[WidgetConfig]:
        return await self.config_repo.list_by_tenant(tenant_id)

    async def get_config(self, tenant_id: UUID, widget_type: WidgetType) -> WidgetConfig:
        config = await self.config_repo.get(tenant_id, widget_type.value)
        if config is None:
            raise NotFoundError("Widget configuration not found")
        return config

    async def update_config(
        self,
        tenant_id: UUID,
        widget_type: WidgetType,
        update: WidgetConfigUpdate,
        actor_id: UUID,
    ) -> WidgetConfig:
        """Replace the configuration if the caller saw the latest version.

        Raises:
            InvalidRequestError: Body's widget_type differs from the path's
            NotFoundError: No configuration for this tenant and widget type
            VersionConflictError: Someone else updated it since expected_version
        """
        configuration = update.configuration
        if configuration.widget_type != widget_type.value:
            raise InvalidRequestError(
                "Configuration widget_type does not match the widget being updated"
            )

        updated = await self.config_repo.update_if_version(
            tenant_id,
            widget_type.value,
            expected_version=update.expected_version,
            configuration=configuration.model_dump(mode="json"),
            schema_version=configuration.schema_version,
            updated_by=actor_id,
        )
        if updated is None:
            await self.session.rollback()
            current = await self.config_repo.get(tenant_id, widget_type.value)
            if current is None:
                raise NotFoundError("Widget configuration not found")
            raise VersionConflictError(
                details={
                    "expected_version": update.expected_version,
                    "current_version": current.version,
                }
            )

        await self.session.commit()
        logger.info(
            "Widget config updated",
            tenant_id=str(tenant_id),
            widget_type=widget_type.value,
            version=updated.version,
        )

        await self.audit_service.log_action(
            AuditAction.WIDGET_CONFIG_UPDATE,
            entity_type="widget_config",
            entity_id=updated.id,
            actor_id=actor_id,
            tenant_id=tenant_id,
            changes={"version": updated.version, "widget_type": widget_type.value},
        )
        await publish_widget_config_change(
            tenant_id, widget_type.value, updated.version, updated.schema_version
        )
        return updated
