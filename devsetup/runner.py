from __future__ import annotations

import logging
import threading
from typing import List, Optional, Sequence

from .context import Context
from .errors import InstallError, PresenceCheckError
from .hook import Hook
from .result import Outcome, RunReport, RunState, StepResult
from .step import Step


logger = logging.getLogger(__name__)


class Runner:
    """Sequential runner for an ordered list of steps.

    Each step is skipped when already present, installed otherwise. A failed
    install is recorded and the run continues, unless the step is fatal, in
    which case nothing after it runs and the report is marked aborted.
    """

    def __init__(self, ctx: Context, hook: Optional[Hook] = None) -> None:
        self.ctx = ctx
        self.hook = hook
        self.state = RunState.NOT_STARTED
        self._cancel = threading.Event()

    def cancel(self) -> None:
        """Stop before the next step begins. A running step is never interrupted.

        Also honoured when called before run(), e.g. during system provisioning.
        """
        self._cancel.set()

    def run(self, steps: Sequence[Step]) -> RunReport:
        _check_unique(steps)
        self.state = RunState.RUNNING
        self._notify("on_run_start", steps)

        results: List[StepResult] = []
        failed_step: Optional[str] = None
        error: Optional[str] = None
        for step in steps:
            if self._cancel.is_set():
                self.state = RunState.CANCELLED
                break
            self._notify("on_step_start", step)
            try:
                result = self._run_step(step)
            except InstallError as e:
                # Only fatal failures escape _run_step.
                result = StepResult(step.name, Outcome.FAILED, e.message)
                failed_step = step.name
                error = str(e)
            results.append(result)
            self._notify("on_step_end", step, result)
            if failed_step is not None:
                self.state = RunState.ABORTED
                break
        else:
            self.state = RunState.COMPLETED

        # A cancel requested before this run began still applies to it; the
        # next run starts clean.
        self._cancel.clear()
        report = RunReport(results=tuple(results), state=self.state, failed_step=failed_step, error=error)
        self._notify("on_run_end", report)
        return report

    def _run_step(self, step: Step) -> StepResult:
        if self.present(step):
            return StepResult(step.name, Outcome.SKIPPED, self.describe(step) or "already present")
        try:
            try:
                step.install(self.ctx)
            except InstallError:
                raise
            except Exception as e:  # noqa: BLE001
                raise InstallError(f"{type(e).__name__}: {e}") from e
            if not self.present(step):
                raise InstallError("install finished but the tool is still not detected")
        except InstallError as e:
            if e.step_name is None:
                e.step_name = step.name
            self._notify("on_error", "install", e, step)
            if step.fatal:
                raise
            return StepResult(step.name, Outcome.FAILED, e.message)
        return StepResult(step.name, Outcome.INSTALLED, self.describe(step) or "installed")

    def present(self, step: Step) -> bool:
        try:
            return bool(step.is_present(self.ctx))
        except Exception as e:  # noqa: BLE001
            err = PresenceCheckError(step.name, e)
            logger.warning("%s; treating it as absent", err)
            self._notify("on_error", "presence", err, step)
            return False

    def describe(self, step: Step) -> str:
        try:
            return (step.version(self.ctx) or "").strip()
        except Exception as e:  # noqa: BLE001
            logger.debug("version lookup for %s failed: %s", step.name, e)
            return ""

    def _notify(self, event: str, *args) -> None:
        if self.hook is None:
            return
        try:
            getattr(self.hook, event)(*args)
        except Exception:  # noqa: BLE001
            logger.debug("hook %s raised", event, exc_info=True)


def _check_unique(steps: Sequence[Step]) -> None:
    seen = set()
    for step in steps:
        if step.name in seen:
            raise ValueError(f"duplicate step name: {step.name!r}")
        seen.add(step.name)
