"""
Temporal Activities - Fine-grained, idempotent operations.

Activities run blocking database work on the sync engine in a thread and are
safe to retry.
"""

from src.tablehost.temporal.activities.maintenance import (
    count_orphaned_principals,
    delete_expired_widget_drafts,
    expire_stale_provisioning_requests,
    prune_provisioning_requests,
)

__all__ = [
    "count_orphaned_principals",
    "delete_expired_widget_drafts",
    "expire_stale_provisioning_requests",
    "prune_provisioning_requests",
]
