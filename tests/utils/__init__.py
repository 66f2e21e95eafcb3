"""Test utilities package."""

from tests.utils.cleanup import (
    cleanup_principal,
    cleanup_provisioning,
    cleanup_tenant_cascade,
)

__all__ = [
    "cleanup_principal",
    "cleanup_provisioning",
    "cleanup_tenant_cascade",
]
