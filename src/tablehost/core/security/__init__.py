"""Security utilities - token verification and validators."""

from src.tablehost.core.security.tokens import create_access_token, decode_access_token
from src.tablehost.core.security.validators import (
    normalize_email,
    normalize_slug,
    validate_tenant_slug_format,
)

__all__ = [
    # Tokens
    "create_access_token",
    "decode_access_token",
    # Validators
    "normalize_email",
    "normalize_slug",
    "validate_tenant_slug_format",
]
