"""Outcome model for a provisioning run.

- Outcome: terminal state of a single step.
- StepResult: immutable record of one step's outcome.
- RunState: lifecycle of a whole run.
- RunReport: ordered, immutable record of every executed step.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Outcome(str, Enum):
    SKIPPED = "skipped"
    INSTALLED = "installed"
    FAILED = "failed"


class RunState(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"  # stopped on a fatal step failure
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class StepResult:
    step_name: str
    outcome: Outcome
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is not Outcome.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {"step": self.step_name, "outcome": self.outcome.value, "detail": self.detail}


@dataclass(frozen=True)
class RunReport:
    """Finalized outcome of a run. Never mutated once handed out."""

    results: Tuple[StepResult, ...] = ()
    state: RunState = RunState.COMPLETED
    failed_step: Optional[str] = None
    error: Optional[str] = field(default=None, compare=False)

    @property
    def aborted(self) -> bool:
        return self.state is RunState.ABORTED

    @property
    def skipped(self) -> Tuple[StepResult, ...]:
        return tuple(r for r in self.results if r.outcome is Outcome.SKIPPED)

    @property
    def installed(self) -> Tuple[StepResult, ...]:
        return tuple(r for r in self.results if r.outcome is Outcome.INSTALLED)

    @property
    def failed(self) -> Tuple[StepResult, ...]:
        return tuple(r for r in self.results if r.outcome is Outcome.FAILED)

    def get(self, step_name: str) -> Optional[StepResult]:
        for r in self.results:
            if r.step_name == step_name:
                return r
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "failed_step": self.failed_step,
            "error": self.error,
            "results": [r.to_dict() for r in self.results],
        }
