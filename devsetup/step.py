from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence

from .context import Context


class Step(ABC):
    """A named, idempotent unit of environment setup.

    Subclasses implement `is_present` (side-effect free) and `install`
    (raises InstallError when the goal cannot be reached). `fatal` decides
    whether a failure halts the whole run.
    """

    def __init__(self, name: str, fatal: bool = False) -> None:
        self.name = name
        self.fatal = fatal

    @abstractmethod
    def is_present(self, ctx: Context) -> bool:
        """Return True if the step's goal is already satisfied."""

    @abstractmethod
    def install(self, ctx: Context) -> None:
        """Perform whatever is needed to satisfy the goal."""

    def version(self, ctx: Context) -> str:
        """Detail string shown in the report, typically the tool's version."""
        return ""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, fatal={self.fatal})"


class CommandStep(Step):
    """Tool that is present when one of `commands` is on PATH.

    - commands: executable names; any one of them satisfies the step.
    - install_cmds: argv lists run in order; each is run with sudo when
      `sudo` is set. Strings are run through bash.
    - version_cmd: argv whose first output line is the report detail.
    """

    def __init__(
        self,
        name: str,
        commands: Sequence[str],
        install_cmds: Optional[Sequence[object]] = None,
        version_cmd: Optional[Sequence[str]] = None,
        sudo: bool = False,
        fatal: bool = False,
    ) -> None:
        super().__init__(name, fatal=fatal)
        self.commands = list(commands)
        self.install_cmds = list(install_cmds or [])
        self.version_cmd = list(version_cmd) if version_cmd else None
        self.sudo = sudo

    def is_present(self, ctx: Context) -> bool:
        return ctx.has_any(*self.commands)

    def install(self, ctx: Context) -> None:
        for cmd in self.install_cmds:
            if isinstance(cmd, str):
                ctx.shell(cmd, sudo=self.sudo)
            else:
                ctx.run(list(cmd), sudo=self.sudo)

    def version(self, ctx: Context) -> str:
        if not self.version_cmd:
            return ""
        return ctx.run(self.version_cmd, check=False).first_line()


class FunctionStep(Step):
    """Step built from plain callables, handy for one-off checks."""

    def __init__(
        self,
        name: str,
        is_present: Callable[[Context], bool],
        install: Callable[[Context], None],
        version: Optional[Callable[[Context], str]] = None,
        fatal: bool = False,
    ) -> None:
        super().__init__(name, fatal=fatal)
        self._is_present = is_present
        self._install = install
        self._version = version

    def is_present(self, ctx: Context) -> bool:
        return bool(self._is_present(ctx))

    def install(self, ctx: Context) -> None:
        self._install(ctx)

    def version(self, ctx: Context) -> str:
        return self._version(ctx) if self._version else ""
