"""
Temporal Worker - Separate process from API.

Run with:
    uv run python -m src.tablehost.temporal.worker
    uv run python -m src.tablehost.temporal.worker --no-schedule   # Don't register the cron
"""

import argparse
import asyncio
from collections.abc import Sequence

import uvicorn
from fastapi import FastAPI
from temporalio.client import Client
from temporalio.exceptions import WorkflowAlreadyStartedError
from temporalio.worker import Worker

from src.tablehost.core.config import get_settings
from src.tablehost.core.db import dispose_sync_engine
from src.tablehost.core.logging import get_logger, setup_logging
from src.tablehost.temporal.activities import (
    count_orphaned_principals,
    delete_expired_widget_drafts,
    expire_stale_provisioning_requests,
    prune_provisioning_requests,
)
from src.tablehost.temporal.workflows import MaintenanceInput, MaintenanceWorkflow

logger = get_logger(__name__)

WORKER_HEALTH_PORT = 8001
MAINTENANCE_WORKFLOW_ID = "tablehost-maintenance"

JOBS_ACTIVITIES = [
    count_orphaned_principals,
    delete_expired_widget_drafts,
    expire_stale_provisioning_requests,
    prune_provisioning_requests,
]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Temporal worker")
    parser.add_argument(
        "--no-schedule",
        action="store_true",
        help="Do not register the maintenance cron workflow",
    )
    return parser.parse_args()


def create_worker(
    client: Client,
    task_queue: str,
    workflows: Sequence[type],
    activities: Sequence[object],
    *,
    max_concurrent_activities: int = 50,
    max_concurrent_workflow_tasks: int = 50,
) -> Worker:
    """Create a worker with tuned settings.

    Args:
        client: Temporal client
        task_queue: Task queue name
        workflows: List of workflow classes
        activities: List of activity functions
        max_concurrent_activities: Max concurrent activity executions
        max_concurrent_workflow_tasks: Max concurrent workflow task executions
    """
    return Worker(
        client,
        task_queue=task_queue,
        workflows=list(workflows),
        activities=list(activities),  # type: ignore[arg-type]
        max_concurrent_activities=max_concurrent_activities,
        max_concurrent_workflow_tasks=max_concurrent_workflow_tasks,
    )


def maintenance_input() -> MaintenanceInput:
    settings = get_settings()
    return MaintenanceInput(
        stale_minutes=settings.provisioning_stale_minutes,
        retention_days=settings.provisioning_retention_days,
    )


async def schedule_maintenance(client: Client) -> bool:
    """Start the maintenance cron workflow if a schedule is configured.

    Returns:
        True if a new cron workflow was started.
    """
    settings = get_settings()
    if not settings.maintenance_schedule:
        logger.info("No maintenance schedule configured")
        return False

    try:
        await client.start_workflow(
            MaintenanceWorkflow.run,
            maintenance_input(),
            id=MAINTENANCE_WORKFLOW_ID,
            task_queue=settings.temporal_task_queue,
            cron_schedule=settings.maintenance_schedule,
        )
    except WorkflowAlreadyStartedError:
        logger.info("Maintenance workflow already scheduled", workflow_id=MAINTENANCE_WORKFLOW_ID)
        return False

    logger.info(
        "Maintenance workflow scheduled",
        workflow_id=MAINTENANCE_WORKFLOW_ID,
        schedule=settings.maintenance_schedule,
    )
    return True


async def run_jobs_worker(client: Client) -> None:
    """Run the worker for the jobs queue (maintenance workflow and activities)."""
    settings = get_settings()
    worker = create_worker(
        client,
        settings.temporal_task_queue,
        workflows=[MaintenanceWorkflow],
        activities=JOBS_ACTIVITIES,
    )
    logger.info("Starting jobs worker", task_queue=settings.temporal_task_queue)
    await worker.run()


def create_health_app(task_queues: list[str]) -> FastAPI:
    health_app = FastAPI(title="Temporal Worker Health")

    @health_app.get("/health")
    async def health() -> dict[str, str | list[str]]:
        return {
            "status": "healthy",
            "service": "temporal-worker",
            "task_queues": task_queues,
        }

    @health_app.get("/ready")
    async def ready() -> dict[str, str]:
        return {"status": "ready"}

    return health_app


async def run_health_server(task_queues: list[str], port: int = WORKER_HEALTH_PORT) -> None:
    """Run a lightweight health server for K8s probes."""
    config = uvicorn.Config(
        create_health_app(task_queues),
        host="0.0.0.0",
        port=port,
        log_level="warning",
    )
    server = uvicorn.Server(config)
    logger.info("Starting health server", port=port)
    await server.serve()


async def main() -> None:
    args = parse_args()
    settings = get_settings()
    setup_logging(settings.debug)

    client = await Client.connect(
        settings.temporal_host,
        namespace=settings.temporal_namespace,
    )

    try:
        health_task = asyncio.create_task(run_health_server([settings.temporal_task_queue]))
        if not args.no_schedule:
            await schedule_maintenance(client)
        await run_jobs_worker(client)
        await health_task
    finally:
        dispose_sync_engine()


if __name__ == "__main__":
    asyncio.run(main())
