"""Temporal Client - For starting workflows from the API."""

from temporalio.client import Client

from src.tablehost.core.config import get_settings

_client: Client | None = None


async def get_temporal_client() -> Client:
    """Get or create Temporal client."""
    global _client
    if _client is None:
        settings = get_settings()
        _client = await Client.connect(
            settings.temporal_host,
            namespace=settings.temporal_namespace,
        )
    return _client


async def close_temporal_client() -> None:
    """Drop the cached client. Call during shutdown.

    The underlying connection has no explicit close; it is released with the
    last reference.
    """
    global _client
    _client = None


def reset_temporal_client() -> None:
    """Forget the cached client (for testing)."""
    global _client
    _client = None
