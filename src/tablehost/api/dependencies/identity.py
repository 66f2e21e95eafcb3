"""Identity provider dependency."""

from collections.abc import AsyncGenerator
from typing import Annotated

import httpx
from fastapi import Depends

from src.tablehost.core.config import get_settings
from src.tablehost.core.identity import GoTrueIdentityProvider, IdentityProvider


async def get_identity_provider() -> AsyncGenerator[IdentityProvider]:
    """Identity provider client bound to a per-request HTTP client.

    Tests override this dependency with an in-memory provider.
    """
    settings = get_settings()
    timeout = httpx.Timeout(settings.identity_request_timeout_seconds)
    async with httpx.AsyncClient(timeout=timeout) as client:
        yield GoTrueIdentityProvider(
            client,
            base_url=settings.identity_url,
            service_key=settings.identity_service_key,
        )


IdentityProviderDep = Annotated[IdentityProvider, Depends(get_identity_provider)]
