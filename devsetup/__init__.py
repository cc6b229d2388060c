"""
devsetup: idempotent provisioning of a Debian-family development workstation.

This package provides core primitives:
- Context: injected capability for running commands and inspecting the machine.
- Step: a named presence check plus install action; CommandStep and FunctionStep provided.
- Runner: sequential, skip-if-present execution with per-step failure policy.
- RunReport / StepResult: immutable outcome of a run.
- Reporter: plain-text summary with post-installation instructions.
- Plan: guard, environment validation, runtime and runner composed into one run.
"""

from .context import Context, SystemContext, CommandResult
from .errors import DevsetupError, PresenceCheckError, InstallError, PrivilegeGuardError, EnvironmentCheckError
from .result import Outcome, RunState, StepResult, RunReport
from .step import Step, CommandStep, FunctionStep
from .runner import Runner
from .report import Reporter, render, DEFAULT_POST_INSTALL
from .hook import Hook, LogHook
from .runtime import Runtime, NullRuntime, AptRuntime
from .envvalidate import EnvValidator, EnvVarValidator, ToolValidator, check_privileges
from .plan import Plan
from .apt import AptPackagesStep, AptRepository
from .config import Config
from .catalog import default_steps, build_steps

__version__ = "0.1.0"

__all__ = [
    "Context",
    "SystemContext",
    "CommandResult",
    # Errors
    "DevsetupError",
    "PresenceCheckError",
    "InstallError",
    "PrivilegeGuardError",
    "EnvironmentCheckError",
    # Results
    "Outcome",
    "RunState",
    "StepResult",
    "RunReport",
    # Steps & running
    "Step",
    "CommandStep",
    "FunctionStep",
    "AptPackagesStep",
    "AptRepository",
    "Runner",
    "Plan",
    "Runtime",
    "NullRuntime",
    "AptRuntime",
    # Reporting & hooks
    "Reporter",
    "render",
    "DEFAULT_POST_INSTALL",
    "Hook",
    "LogHook",
    # Env validation
    "EnvValidator",
    "EnvVarValidator",
    "ToolValidator",
    "check_privileges",
    # Config & catalog
    "Config",
    "default_steps",
    "build_steps",
]
