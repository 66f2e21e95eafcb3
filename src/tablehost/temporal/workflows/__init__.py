"""Temporal Workflows - Re-exports for worker registration."""

from src.tablehost.temporal.workflows.maintenance import (
    MaintenanceInput,
    MaintenanceResult,
    MaintenanceWorkflow,
)

__all__ = [
    "MaintenanceInput",
    "MaintenanceResult",
    "MaintenanceWorkflow",
]
