"""
Orchestrator - Run State Machine.

============================================================
STATES
============================================================

    IDLE ──► RUNNING ──► FLUSHING ──► DONE
                │   │        │
                │   └────────┼──────► DONE   (debug: no flush)
                ▼            ▼
              FAILED       FAILED

INVARIANTS:
- DONE and FAILED are terminal
- A run never goes back to IDLE
- Every transition is logged

============================================================
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Set

from .exceptions import StateTransitionError


logger = logging.getLogger(__name__)


class RunState(Enum):
    """Lifecycle state of one exporter run."""

    IDLE = "idle"
    RUNNING = "running"
    FLUSHING = "flushing"
    DONE = "done"
    FAILED = "failed"

    def is_terminal(self) -> bool:
        return self in (RunState.DONE, RunState.FAILED)


VALID_TRANSITIONS: Dict[RunState, Set[RunState]] = {
    RunState.IDLE: {RunState.RUNNING},
    RunState.RUNNING: {RunState.FLUSHING, RunState.DONE, RunState.FAILED},
    RunState.FLUSHING: {RunState.DONE, RunState.FAILED},
    # Terminal states - no transitions out
    RunState.DONE: set(),
    RunState.FAILED: set(),
}


@dataclass
class RunTransition:
    from_state: RunState
    to_state: RunState
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    reason: str = ""


class RunStateMachine:
    """Tracks the state of a run and rejects illegal transitions."""

    def __init__(self) -> None:
        self._state = RunState.IDLE
        self._history: List[RunTransition] = []

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def history(self) -> List[RunTransition]:
        return list(self._history)

    def can_transition_to(self, target: RunState) -> bool:
        return target in VALID_TRANSITIONS.get(self._state, set())

    def transition(self, target: RunState, reason: str = "") -> None:
        """
        Move to the target state.

        Raises:
            StateTransitionError: If the transition is not allowed
        """
        if not self.can_transition_to(target):
            raise StateTransitionError(self._state.value, target.value)

        event = RunTransition(from_state=self._state, to_state=target, reason=reason)
        self._history.append(event)
        self._state = target

        suffix = f" ({reason})" if reason else ""
        logger.debug(f"Run state {event.from_state.value} -> {target.value}{suffix}")
