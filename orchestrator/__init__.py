"""
Orchestrator Package - Runs one Helium export.

Quick Start:
    from orchestrator import ExporterConfig, run_job

    asyncio.run(run_job(ExporterConfig.from_env()))

Or, from a scheduler:
    from orchestrator import handler
    handler()  # "Done", or raises JobFailedError
"""

from .coordinator import PROCESSING_MEASUREMENT, RunCoordinator
from .exceptions import (
    ConfigurationError,
    ExporterError,
    JobFailedError,
    StateTransitionError,
)
from .job import build_sink, handler, run_export, run_job, settle_all, setup_logging
from .models import ExporterConfig, RunResult, TaskOutcome
from .state_machine import RunState, RunStateMachine, VALID_TRANSITIONS


__all__ = [
    # Models
    "ExporterConfig",
    "RunResult",
    "TaskOutcome",
    "RunState",
    "RunStateMachine",
    "VALID_TRANSITIONS",
    # Run
    "RunCoordinator",
    "PROCESSING_MEASUREMENT",
    "settle_all",
    "run_export",
    "run_job",
    "build_sink",
    "handler",
    "setup_logging",
    # Exceptions
    "ExporterError",
    "ConfigurationError",
    "StateTransitionError",
    "JobFailedError",
]
