"""Property-based tests for slug and email validation using hypothesis."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from pydantic import ValidationError

from src.tablehost.core.security.validators import (
    MAX_TENANT_SLUG_LENGTH,
    MIN_TENANT_SLUG_LENGTH,
    TENANT_SLUG_REGEX,
    normalize_slug,
    validate_tenant_slug_format,
)
from src.tablehost.schemas.provisioning import ProvisionTenantRequest

pytestmark = pytest.mark.unit


# Pattern: ^[a-z0-9]+(-[a-z0-9]+)*$
# - Lowercase letters and digits
# - Single hyphens only as separators (not leading, trailing or repeated)
valid_slug = st.from_regex(TENANT_SLUG_REGEX, fullmatch=True).filter(
    lambda s: MIN_TENANT_SLUG_LENGTH <= len(s) <= MAX_TENANT_SLUG_LENGTH
)


def _request(slug: str, email: str = "owner@example.com") -> ProvisionTenantRequest:
    return ProvisionTenantRequest(slug=slug, email=email, idempotency_key="key-1")


@given(slug=valid_slug)
@settings(max_examples=100)
def test_valid_slugs_accepted_unchanged(slug: str):
    """Already-normalized slugs pass through untouched."""
    assert _request(slug).slug == slug


@given(raw=st.text(max_size=120))
@settings(max_examples=200)
def test_normalize_slug_output_is_valid_or_too_short(raw: str):
    """Normalization yields either a valid slug or one rejected only for length."""
    slug = normalize_slug(raw)
    assert len(slug) <= MAX_TENANT_SLUG_LENGTH
    if len(slug) >= MIN_TENANT_SLUG_LENGTH:
        assert validate_tenant_slug_format(slug) == slug


@given(raw=st.text(max_size=120))
def test_normalize_slug_is_idempotent(raw: str):
    once = normalize_slug(raw)
    assert normalize_slug(once) == once


@given(slug=valid_slug)
def test_uppercase_input_is_lowercased(slug: str):
    assert _request(slug.upper()).slug == slug


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("  Acme--Bistro! ", "acme-bistro"),
        ("-leading-and-trailing-", "leading-and-trailing"),
        ("Café Rouge", "caf-rouge"),
        ("under_score", "under-score"),
    ],
)
def test_normalize_slug_examples(raw: str, expected: str):
    assert normalize_slug(raw) == expected


@pytest.mark.parametrize("raw", ["", "a", "ab", "!!", "--"])
def test_short_slugs_rejected(raw: str):
    with pytest.raises(ValidationError) as exc_info:
        _request(raw)
    errors = exc_info.value.errors()
    assert any(error["loc"] == ("slug",) for error in errors)


def test_long_slug_truncated_to_maximum():
    request = _request("a" * (MAX_TENANT_SLUG_LENGTH + 20))
    assert len(request.slug) == MAX_TENANT_SLUG_LENGTH


def test_truncation_does_not_leave_trailing_hyphen():
    raw = "a" * (MAX_TENANT_SLUG_LENGTH - 1) + "-b"
    assert not normalize_slug(raw).endswith("-")


def test_email_is_lowercased():
    assert _request("acme-bistro", email="Owner@Example.COM").email == "owner@example.com"


@pytest.mark.parametrize("email", ["not-an-email", "missing@tld", "@example.com"])
def test_invalid_email_rejected(email: str):
    with pytest.raises(ValidationError) as exc_info:
        _request("acme-bistro", email=email)
    errors = exc_info.value.errors()
    assert any(error["loc"] == ("email",) for error in errors)
