"""Input normalization and validation for tenant identifiers."""

import re
from typing import Final

MIN_TENANT_SLUG_LENGTH: Final[int] = 3
MAX_TENANT_SLUG_LENGTH: Final[int] = 50
TENANT_SLUG_REGEX: Final[str] = r"^[a-z0-9]+(-[a-z0-9]+)*$"

_TENANT_SLUG_PATTERN: Final[re.Pattern[str]] = re.compile(TENANT_SLUG_REGEX)
_SLUG_SEPARATORS: Final[re.Pattern[str]] = re.compile(r"[\s_]+")
_SLUG_INVALID_CHARS: Final[re.Pattern[str]] = re.compile(r"[^a-z0-9-]")
_SLUG_REPEATED_HYPHENS: Final[re.Pattern[str]] = re.compile(r"-{2,}")


def normalize_slug(raw: str) -> str:
    """Normalize a user-supplied slug.

    Lowercases, turns whitespace and underscores into hyphens, drops other
    characters outside ``[a-z0-9-]``, collapses repeated hyphens, strips
    leading/trailing hyphens and truncates to the maximum length.
    ``"  Acme Bistro! "`` becomes ``"acme-bistro"``.
    """
    slug = _SLUG_SEPARATORS.sub("-", raw.strip().lower())
    slug = _SLUG_INVALID_CHARS.sub("", slug)
    slug = _SLUG_REPEATED_HYPHENS.sub("-", slug).strip("-")
    return slug[:MAX_TENANT_SLUG_LENGTH].rstrip("-")


def validate_tenant_slug_format(slug: str) -> str:
    """Validate a normalized slug. Returns it unchanged or raises ValueError."""
    if len(slug) < MIN_TENANT_SLUG_LENGTH:
        raise ValueError(f"Slug must be at least {MIN_TENANT_SLUG_LENGTH} characters")
    if len(slug) > MAX_TENANT_SLUG_LENGTH:
        raise ValueError(f"Slug must be at most {MAX_TENANT_SLUG_LENGTH} characters")
    if not _TENANT_SLUG_PATTERN.match(slug):
        raise ValueError(
            "Slug must contain only lowercase letters, numbers and single hyphens as separators"
        )
    return slug


def normalize_email(raw: str) -> str:
    return raw.strip().lower()


def email_domain(email: str) -> str:
    return email.rsplit("@", 1)[-1].lower()
