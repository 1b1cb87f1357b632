"""
Sync Module

- SyncService: one pass (fetch -> map -> reconcile -> write or simulate)
- PlanExecutor: batched writes with per-row failure accounting
- load_job / build_service: JSON job file wiring
"""

from .job import SyncJob, build_service, load_job
from .plan_executor import ExecutionOutcome, PlanExecutor
from .service import SyncService

__all__ = [
    "SyncJob",
    "SyncService",
    "PlanExecutor",
    "ExecutionOutcome",
    "build_service",
    "load_job",
]
