"""Exception types raised while provisioning a workstation."""
from __future__ import annotations

from typing import Any, List, Optional


class DevsetupError(Exception):
    """Base class for devsetup errors."""


class PresenceCheckError(DevsetupError):
    """A step's presence check raised. The step is treated as absent."""

    def __init__(self, step_name: str, cause: BaseException) -> None:
        self.step_name = step_name
        self.cause = cause
        super().__init__(f"presence check for '{step_name}' failed: {cause}")


class InstallError(DevsetupError):
    """An install action did not complete.

    Carries the human-readable cause and, for command failures, the exit code
    and captured stderr.
    """

    def __init__(
        self,
        message: str,
        step_name: Optional[str] = None,
        returncode: Optional[int] = None,
        stderr: Optional[str] = None,
    ) -> None:
        self.message = message
        self.step_name = step_name
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)

    def __str__(self) -> str:
        if self.step_name:
            return f"{self.step_name}: {self.message}"
        return self.message


class PrivilegeGuardError(DevsetupError):
    """Raised once at startup when run with a disallowed privilege level."""


class EnvironmentCheckError(DevsetupError):
    """Environment validation found issues; nothing was run."""

    def __init__(self, issues: List[Any]) -> None:
        self.issues = list(issues)
        lines = [getattr(i, "message", str(i)) for i in self.issues]
        super().__init__("environment is not ready:\n  - " + "\n  - ".join(lines))
