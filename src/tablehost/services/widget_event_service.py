"""Public widget event ingestion."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.tablehost.core.exceptions import NotFoundError
from src.tablehost.core.logging import get_logger
from src.tablehost.models import WidgetEvent
from src.tablehost.repositories import TenantRepository, WidgetEventRepository
from src.tablehost.schemas.widget import WidgetEventCreate

logger = get_logger(__name__)


class WidgetEventService:
    """Appends events posted by embedded widgets.

    Runs on a service session: widgets carry no credentials, so the tenant is
    checked here instead of by the row-level policy.
    """

    def __init__(
        self,
        tenant_repo: TenantRepository,
        event_repo: WidgetEventRepository,
        session: AsyncSession,
    ):
        self.tenant_repo = tenant_repo
        self.event_repo = event_repo
        self.session = session

    async def record_event(self, event: WidgetEventCreate) -> WidgetEvent:
        """Append one event.

        Raises:
            NotFoundError: Tenant does not exist, is inactive or is not provisioned
        """
        tenant = await self.tenant_repo.get_by_id(event.tenant_id)
        if tenant is None or not tenant.is_active or not tenant.is_completed:
            raise NotFoundError("Tenant not found")

        record = WidgetEvent(
            tenant_id=tenant.id,
            widget_type=event.widget_type.value,
            event_type=event.event_type.value,
            session_id=event.session_id,
            properties=event.properties,
        )
        self.event_repo.add(record)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.debug(
            "Widget event recorded",
            tenant_id=str(tenant.id),
            widget_type=record.widget_type,
            event_type=record.event_type,
        )
        return record
