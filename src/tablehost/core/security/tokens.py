"""Verification of access tokens issued by the identity provider."""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from src.tablehost.core.config import get_settings


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode and validate an identity-provider JWT. Returns None on any error."""
    settings = get_settings()
    try:
        return jwt.decode(  # type: ignore[no-any-return]
            token,
            settings.identity_jwt_secret,
            algorithms=[settings.identity_jwt_algorithm],
            audience=settings.identity_jwt_audience,
        )
    except JWTError:
        return None


def create_access_token(
    subject: str | UUID,
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Mint a token shaped like the identity provider's.

    Used by tests and local tooling; production tokens come from the provider.
    """
    settings = get_settings()
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=30))
    claims: dict[str, Any] = {
        "sub": str(subject),
        "aud": settings.identity_jwt_audience,
        "role": "authenticated",
        "exp": expire,
    }
    if email:
        claims["email"] = email
    return jwt.encode(  # type: ignore[no-any-return]
        claims,
        settings.identity_jwt_secret,
        algorithm=settings.identity_jwt_algorithm,
    )
