from __future__ import annotations

import logging
from abc import ABC
from typing import Any

from .result import Outcome, RunReport, StepResult


logger = logging.getLogger("devsetup")


class Hook(ABC):
    """Base hook with no-op defaults.

    Hooks observe a run as it happens. The runner guards every call, so a
    misbehaving hook can never break provisioning.
    """

    def on_run_start(self, steps: Any) -> None:  # noqa: D401
        return None

    def on_run_end(self, report: RunReport) -> None:  # noqa: D401
        return None

    def on_step_start(self, step: Any) -> None:  # noqa: D401
        return None

    def on_step_end(self, step: Any, result: StepResult) -> None:  # noqa: D401
        return None

    def on_error(self, scope: str, error: Exception, step: Any = None) -> None:  # noqa: D401
        return None


class LogHook(Hook):
    """Inline progress through logging: info, warnings for skips, errors for failures."""

    def __init__(self, log: logging.Logger = logger) -> None:
        self.log = log

    def on_run_start(self, steps: Any) -> None:
        self.log.info("Provisioning %d steps", len(steps))

    def on_step_start(self, step: Any) -> None:
        self.log.info("Installing %s...", step.name)

    def on_step_end(self, step: Any, result: StepResult) -> None:
        if result.outcome is Outcome.SKIPPED:
            self.log.warning("%s already installed%s", step.name, _suffix(result.detail))
        elif result.outcome is Outcome.INSTALLED:
            self.log.info("%s installed successfully%s", step.name, _suffix(result.detail))
        elif step.fatal:
            self.log.error("%s failed: %s", step.name, result.detail)
        else:
            self.log.warning("%s installation had issues, continuing: %s", step.name, result.detail)

    def on_run_end(self, report: RunReport) -> None:
        if report.aborted:
            self.log.error("Run aborted: fatal step '%s' failed", report.failed_step)
        else:
            self.log.info("Run %s", report.state.value)


def _suffix(detail: str) -> str:
    return f": {detail}" if detail else ""
