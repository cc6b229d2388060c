from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, List, Sequence

from .context import Context
from .errors import PrivilegeGuardError


@dataclass
class EnvIssue:
    kind: str         # 'env_var_missing' | 'tool_missing' | 'validator_error'
    name: str
    message: str


class EnvValidator:
    """Checks one aspect of the machine before anything is installed.

    Validators report every problem they find instead of stopping at the first.
    """

    def run(self, ctx: Context) -> List[EnvIssue]:
        raise NotImplementedError


class EnvVarValidator(EnvValidator):
    """Each variable must be set to a non-blank value in the context's environment."""

    def __init__(self, required: Sequence[str]) -> None:
        self.required = list(required)

    def run(self, ctx: Context) -> List[EnvIssue]:
        return [
            EnvIssue(kind="env_var_missing", name=var, message=f"Environment variable {var} is required")
            for var in self.required
            if not (ctx.env.get(var) or "").strip()
        ]


class ToolValidator(EnvValidator):
    """Each executable must be on the context's PATH."""

    def __init__(self, tools: Sequence[str]) -> None:
        self.tools = list(tools)

    def run(self, ctx: Context) -> List[EnvIssue]:
        return [
            EnvIssue(kind="tool_missing", name=tool, message=f"Required tool '{tool}' not found on PATH")
            for tool in self.tools
            if not ctx.which(tool)
        ]


def check_privileges(geteuid: Callable[[], int] = os.geteuid) -> None:
    """Raise PrivilegeGuardError when running as root."""
    if geteuid() == 0:
        raise PrivilegeGuardError(
            "This script should not be run as root. Run as normal user with sudo privileges."
        )


def default_validators() -> List[EnvValidator]:
    # HOME and USER locate per-user installs (nvm, LazyVim) and the docker group member.
    return [
        EnvVarValidator(["HOME", "USER"]),
        ToolValidator(["sudo", "apt-get", "dpkg-query"]),
    ]
