"""
Orchestrator - Exceptions.

    ExporterError
    ├── ConfigurationError    bad or missing settings, raised before any I/O
    ├── StateTransitionError  illegal run state change
    └── JobFailedError        first rejected top-level task
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class ExporterError(Exception):
    """Base exception for exporter run errors."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(ExporterError):
    """Configuration is missing or invalid."""

    def __init__(self, message: str, errors: Optional[List[str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.errors = list(errors or [])
        if self.errors:
            self.context["errors"] = self.errors


class StateTransitionError(ExporterError):
    """A run was asked to move to a state it cannot reach."""

    def __init__(self, from_state: str, to_state: str):
        super().__init__(
            f"Invalid run transition: {from_state} -> {to_state}",
            context={"from_state": from_state, "to_state": to_state},
        )
        self.from_state = from_state
        self.to_state = to_state


class JobFailedError(ExporterError):
    """
    The job had at least one rejected task.

    The message is the first rejection's message, verbatim.
    """

    def __init__(self, message: str, task_name: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.task_name = task_name
        if task_name:
            self.context["task_name"] = task_name
