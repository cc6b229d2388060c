from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from .context import Context
from .envvalidate import EnvIssue, EnvValidator, check_privileges
from .errors import EnvironmentCheckError, InstallError
from .hook import Hook
from .result import Outcome, RunReport, RunState, StepResult
from .runner import Runner
from .runtime import Runtime
from .step import Step


logger = logging.getLogger(__name__)

PROVISION_STEP = "system update"


class Plan:
    """Compose guard, validators, runtime and runner into one provisioning run."""

    def __init__(
        self,
        steps: Sequence[Step],
        ctx: Context,
        runtime: Optional[Runtime] = None,
        hook: Optional[Hook] = None,
        validators: Optional[List[EnvValidator]] = None,
        guard: Optional[Callable[[], None]] = check_privileges,
    ) -> None:
        self.steps = list(steps)
        self.ctx = ctx
        self.runtime = runtime
        self.hook = hook
        self.validators = validators or []
        self.guard = guard
        self.runner = Runner(ctx, hook=hook)

    def validate_environment(self) -> Dict[str, Any]:
        """Run all configured validators and return a report without raising."""
        issues: List[Any] = []
        for v in self.validators:
            try:
                issues.extend(v.run(self.ctx))
            except Exception as e:  # noqa: BLE001
                issues.append(EnvIssue(kind="validator_error", name=type(v).__name__, message=str(e)))
        return {"status": "ok" if not issues else "invalid_env", "issues": issues}

    def execute(self) -> RunReport:
        if self.guard is not None:
            self.guard()
        if self.validators:
            env_report = self.validate_environment()
            if env_report["status"] != "ok":
                raise EnvironmentCheckError(env_report["issues"])

        if self.runtime is not None:
            try:
                self.runtime.provision(self.ctx)
            except InstallError as e:
                logger.error("%s failed: %s", PROVISION_STEP, e)
                return RunReport(
                    results=(StepResult(PROVISION_STEP, Outcome.FAILED, e.message),),
                    state=RunState.ABORTED,
                    failed_step=PROVISION_STEP,
                    error=str(e),
                )
        try:
            return self.runner.run(self.steps)
        finally:
            if self.runtime is not None:
                self.runtime.teardown(self.ctx)

    def check(self) -> List[Dict[str, Any]]:
        """Presence-only pass: report what is present and what would be installed."""
        rows: List[Dict[str, Any]] = []
        for step in self.steps:
            present = self.runner.present(step)
            rows.append(
                {
                    "step": step.name,
                    "present": present,
                    "fatal": step.fatal,
                    "detail": self.runner.describe(step) if present else "",
                }
            )
        return rows
