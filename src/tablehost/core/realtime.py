"""Change publication for live widget configuration updates.

Embedded widgets and the dashboard subscribe to ``widget-config:{tenant_id}``
on Redis pub/sub. Publication is best effort: without Redis, clients fall back
to polling the config endpoint.
"""

import json
from uuid import UUID

from src.tablehost.core.logging import get_logger
from src.tablehost.core.redis import get_redis

logger = get_logger(__name__)

CHANNEL_PREFIX = "widget-config"


def widget_config_channel(tenant_id: UUID) -> str:
    return f"{CHANNEL_PREFIX}:{tenant_id}"


async def publish_widget_config_change(
    tenant_id: UUID,
    widget_type: str,
    version: int,
    schema_version: int,
) -> bool:
    """Announce a configuration change.

    Returns:
        True if the message reached Redis, False if Redis is unavailable.
    """
    redis = await get_redis()
    if redis is None:
        return False

    message = json.dumps(
        {
            "event": "widget_config.updated",
            "tenant_id": str(tenant_id),
            "widget_type": widget_type,
            "version": version,
            "schema_version": schema_version,
        }
    )
    try:
        await redis.publish(widget_config_channel(tenant_id), message)
    except Exception as e:
        logger.warning(
            "Widget config change not published",
            tenant_id=str(tenant_id),
            widget_type=widget_type,
            error=str(e),
        )
        return False
    return True
