"""
Maintenance Workflow.

Housekeeping for provisioning records and widget drafts:
1. Expire provisioning attempts stuck in ``processing``
2. Prune finished provisioning records past retention
3. Delete expired widget drafts
4. Report orphaned principals awaiting manual cleanup

Designed to be run on a schedule (e.g. daily at 3am UTC via Temporal cron).
"""

from dataclasses import dataclass
from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from src.tablehost.temporal.activities import (
        count_orphaned_principals,
        delete_expired_widget_drafts,
        expire_stale_provisioning_requests,
        prune_provisioning_requests,
    )

ACTIVITY_TIMEOUT = timedelta(minutes=5)
ACTIVITY_RETRY_POLICY = RetryPolicy(
    maximum_attempts=3,
    initial_interval=timedelta(seconds=2),
)


@dataclass
class MaintenanceInput:
    stale_minutes: int = 15
    retention_days: int = 90


@dataclass
class MaintenanceResult:
    expired_attempts: int
    pruned_requests: int
    deleted_drafts: int
    orphaned_principals: int


@workflow.defn
class MaintenanceWorkflow:
    """
    Periodic cleanup of provisioning and widget state.

    Stale attempts are expired before pruning so an attempt that was expired
    in this run is flagged and kept. Pruning and draft deletion are
    independent and run in parallel. The orphan count runs last so it
    includes attempts expired in this run.
    """

    @workflow.run
    async def run(self, input: MaintenanceInput) -> MaintenanceResult:
        workflow.logger.info(
            f"Starting maintenance (stale after {input.stale_minutes} min, "
            f"retention {input.retention_days} days)"
        )

        expired = await workflow.execute_activity(
            expire_stale_provisioning_requests,
            input.stale_minutes,
            start_to_close_timeout=ACTIVITY_TIMEOUT,
            retry_policy=ACTIVITY_RETRY_POLICY,
        )

        prune_task = workflow.execute_activity(
            prune_provisioning_requests,
            input.retention_days,
            start_to_close_timeout=ACTIVITY_TIMEOUT,
            retry_policy=ACTIVITY_RETRY_POLICY,
        )
        drafts_task = workflow.execute_activity(
            delete_expired_widget_drafts,
            start_to_close_timeout=ACTIVITY_TIMEOUT,
            retry_policy=ACTIVITY_RETRY_POLICY,
        )
        pruned = await prune_task
        drafts = await drafts_task

        orphans = await workflow.execute_activity(
            count_orphaned_principals,
            start_to_close_timeout=ACTIVITY_TIMEOUT,
            retry_policy=ACTIVITY_RETRY_POLICY,
        )

        result = MaintenanceResult(
            expired_attempts=expired,
            pruned_requests=pruned,
            deleted_drafts=drafts,
            orphaned_principals=orphans,
        )
        workflow.logger.info(
            f"Maintenance complete: {result.expired_attempts} expired, "
            f"{result.pruned_requests} pruned, {result.deleted_drafts} drafts, "
            f"{result.orphaned_principals} orphans"
        )
        return result
