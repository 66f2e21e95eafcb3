"""Tests for the maintenance workflow and worker wiring."""

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from temporalio import activity
from temporalio.exceptions import WorkflowAlreadyStartedError
from temporalio.testing import WorkflowEnvironment
from temporalio.worker import Worker

from src.tablehost.temporal.worker import (
    MAINTENANCE_WORKFLOW_ID,
    create_health_app,
    maintenance_input,
    schedule_maintenance,
)
from src.tablehost.temporal.workflows import (
    MaintenanceInput,
    MaintenanceResult,
    MaintenanceWorkflow,
)

pytestmark = pytest.mark.unit


class FakeActivities:
    """Activities registered under the real names, recording their calls."""

    def __init__(self, fail_prune_times: int = 0) -> None:
        self.calls: list[tuple[str, object]] = []
        self.fail_prune_times = fail_prune_times

    def build(self) -> list:
        @activity.defn(name="expire_stale_provisioning_requests")
        async def expire(stale_minutes: int) -> int:
            self.calls.append(("expire", stale_minutes))
            return 2

        @activity.defn(name="prune_provisioning_requests")
        async def prune(retention_days: int) -> int:
            self.calls.append(("prune", retention_days))
            if self.fail_prune_times > 0:
                self.fail_prune_times -= 1
                raise RuntimeError("database restarting")
            return 7

        @activity.defn(name="delete_expired_widget_drafts")
        async def drafts() -> int:
            self.calls.append(("drafts", None))
            return 3

        @activity.defn(name="count_orphaned_principals")
        async def orphans() -> int:
            self.calls.append(("orphans", None))
            return 1

        return [expire, prune, drafts, orphans]


async def _run(fakes: FakeActivities, input: MaintenanceInput) -> MaintenanceResult:
    task_queue = f"maintenance-{uuid.uuid4()}"
    async with await WorkflowEnvironment.start_time_skipping() as env:  # noqa: SIM117
        async with Worker(
            env.client,
            task_queue=task_queue,
            workflows=[MaintenanceWorkflow],
            activities=fakes.build(),
        ):
            return await env.client.execute_workflow(
                MaintenanceWorkflow.run,
                input,
                id=f"maintenance-test-{uuid.uuid4()}",
                task_queue=task_queue,
            )


class TestMaintenanceWorkflow:
    async def test_reports_counts_from_every_activity(self):
        fakes = FakeActivities()

        result = await _run(fakes, MaintenanceInput(stale_minutes=30, retention_days=7))

        assert result == MaintenanceResult(
            expired_attempts=2, pruned_requests=7, deleted_drafts=3, orphaned_principals=1
        )
        assert ("expire", 30) in fakes.calls
        assert ("prune", 7) in fakes.calls

    async def test_expires_before_pruning_and_counts_orphans_last(self):
        fakes = FakeActivities()

        await _run(fakes, MaintenanceInput())

        names = [name for name, _ in fakes.calls]
        assert names[0] == "expire"
        assert names[-1] == "orphans"
        assert set(names[1:3]) == {"prune", "drafts"}

    async def test_failed_activity_is_retried(self):
        fakes = FakeActivities(fail_prune_times=1)

        result = await _run(fakes, MaintenanceInput())

        assert result.pruned_requests == 7
        assert [name for name, _ in fakes.calls].count("prune") == 2


class TestWorkerHealthApp:
    async def test_health_and_ready(self):
        app = create_health_app(["tablehost-jobs"])

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            health = await client.get("/health")
            ready = await client.get("/ready")

        assert health.json() == {
            "status": "healthy",
            "service": "temporal-worker",
            "task_queues": ["tablehost-jobs"],
        }
        assert ready.json() == {"status": "ready"}


def _settings(schedule: str | None) -> SimpleNamespace:
    return SimpleNamespace(
        maintenance_schedule=schedule,
        temporal_task_queue="tablehost-jobs",
        provisioning_stale_minutes=20,
        provisioning_retention_days=30,
    )


class TestScheduleMaintenance:
    async def test_skipped_without_schedule(self):
        client = AsyncMock()

        with patch("src.tablehost.temporal.worker.get_settings", return_value=_settings(None)):
            assert await schedule_maintenance(client) is False

        client.start_workflow.assert_not_called()

    async def test_starts_cron_workflow(self):
        client = AsyncMock()

        with patch(
            "src.tablehost.temporal.worker.get_settings", return_value=_settings("0 3 * * *")
        ):
            assert await schedule_maintenance(client) is True

        args, kwargs = client.start_workflow.call_args
        assert args[1] == MaintenanceInput(stale_minutes=20, retention_days=30)
        assert kwargs["id"] == MAINTENANCE_WORKFLOW_ID
        assert kwargs["cron_schedule"] == "0 3 * * *"
        assert kwargs["task_queue"] == "tablehost-jobs"

    async def test_already_scheduled(self):
        client = AsyncMock()
        client.start_workflow.side_effect = WorkflowAlreadyStartedError(
            MAINTENANCE_WORKFLOW_ID, "MaintenanceWorkflow"
        )

        with patch(
            "src.tablehost.temporal.worker.get_settings", return_value=_settings("0 3 * * *")
        ):
            assert await schedule_maintenance(client) is False


def test_maintenance_input_reads_settings():
    with patch("src.tablehost.temporal.worker.get_settings", return_value=_settings(None)):
        assert maintenance_input() == MaintenanceInput(stale_minutes=20, retention_days=30)
