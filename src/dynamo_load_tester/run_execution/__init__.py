"""Run execution exports."""

from .load_test_orchestrator import LoadTestOrchestrator, RunExecutionError
from .load_test_run_use_case import (
    RunOutcome,
    RunRequest,
    execute_load_test_run,
    resolve_configuration,
)
from .run_contracts import LoadPlan, PhaseSlice, RunPhase, build_load_plan, level_for_ramp_item

__all__ = [
    "LoadTestOrchestrator",
    "RunExecutionError",
    "RunRequest",
    "RunOutcome",
    "execute_load_test_run",
    "resolve_configuration",
    "LoadPlan",
    "PhaseSlice",
    "RunPhase",
    "build_load_plan",
    "level_for_ramp_item",
]
