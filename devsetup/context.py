from __future__ import annotations

import getpass
import logging
import os
import shutil
import signal
import subprocess
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from .errors import InstallError


logger = logging.getLogger(__name__)

DEFAULT_COMMAND_TIMEOUT = 1800.0
# Seconds a timed-out command gets after SIGTERM before its process group is killed.
KILL_GRACE = 5.0

PathLike = Union[str, Path]


@dataclass
class CommandResult:
    cmd: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def first_line(self) -> str:
        text = self.stdout or self.stderr
        return text.splitlines()[0].strip() if text.strip() else ""


class Context(ABC):
    """Capability through which steps inspect and change the machine.

    Steps never call subprocess or touch the filesystem directly; they go
    through a Context so the runner can be exercised against a fake one.
    """

    def __init__(self, home: Optional[PathLike] = None, user: Optional[str] = None, env: Optional[Dict[str, str]] = None) -> None:
        self.env = dict(os.environ if env is None else env)
        self.home = Path(home or self.env.get("HOME") or Path.home())
        self.user = user or self.env.get("USER") or getpass.getuser()

    @abstractmethod
    def which(self, name: str) -> Optional[str]:
        """Return the path of executable `name`, or None."""

    @abstractmethod
    def exists(self, path: PathLike) -> bool:
        """Return True if `path` exists."""

    @abstractmethod
    def run(
        self,
        cmd: Sequence[str],
        *,
        sudo: bool = False,
        check: bool = True,
        cwd: Optional[PathLike] = None,
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """Run a command. With check=True a non-zero exit raises InstallError."""

    def shell(self, script: str, *, sudo: bool = False, check: bool = True, timeout: Optional[float] = None) -> CommandResult:
        """Run a bash snippet (pipelines, redirections, sourcing rc files)."""
        return self.run(["bash", "-c", script], sudo=sudo, check=check, timeout=timeout)

    def expand(self, path: PathLike) -> Path:
        """Expand a leading ~ against the target user's home."""
        p = str(path)
        if p == "~" or p.startswith("~/"):
            return self.home / p[2:]
        return Path(p)

    def has_any(self, *names: str) -> bool:
        return any(self.which(n) for n in names)

    def authenticate(self) -> None:
        """Make sure privileged commands can run without prompting."""


class SystemContext(Context):
    """Context backed by the real machine.

    Config:
    - timeout: default per-command timeout in seconds.
    - show: stream command output to the terminal while it runs.
    """

    def __init__(
        self,
        home: Optional[PathLike] = None,
        user: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        timeout: float = DEFAULT_COMMAND_TIMEOUT,
        show: bool = False,
    ) -> None:
        super().__init__(home=home, user=user, env=env)
        self.timeout = timeout
        self.show = show

    def which(self, name: str) -> Optional[str]:
        return shutil.which(name, path=self.env.get("PATH"))

    def exists(self, path: PathLike) -> bool:
        return self.expand(path).exists()

    def authenticate(self) -> None:
        # Runs in the foreground so sudo can prompt on the terminal; with a
        # valid cached ticket it returns at once and extends it.
        try:
            cp = subprocess.run(["sudo", "-v"], env=self.env, check=False)
        except OSError as e:
            raise InstallError(f"cannot execute sudo: {e}") from e
        if cp.returncode != 0:
            raise InstallError("sudo authentication failed", returncode=cp.returncode)

    def run(
        self,
        cmd: Sequence[str],
        *,
        sudo: bool = False,
        check: bool = True,
        cwd: Optional[PathLike] = None,
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        argv = list(cmd)
        if not argv:
            raise ValueError("run() requires a non-empty command")
        if sudo and os.geteuid() != 0:
            # The child runs outside the terminal's foreground group and cannot
            # prompt, so credentials are refreshed here first.
            self.authenticate()
            argv = ["sudo", "-n", "-E"] + argv
        run_env = dict(self.env)
        if env:
            run_env.update(env)
        timeout = self.timeout if timeout is None else timeout
        show = self.show

        logger.debug("running: %s", " ".join(argv))
        start = time.time()
        stdout_buf: List[str] = []
        stderr_buf: List[str] = []
        try:
            proc = subprocess.Popen(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                bufsize=1,
                env=run_env,
                cwd=str(self.expand(cwd)) if cwd else None,
                # Own process group: a timeout can kill the whole tree, and a
                # terminal Ctrl-C reaches only devsetup itself.
                process_group=0,
            )
        except OSError as e:
            raise InstallError(f"cannot execute {argv[0]}: {e}") from e

        def _read_stream(stream, buf: List[str]) -> None:
            try:
                for line in iter(stream.readline, ""):
                    buf.append(line)
                    if show:
                        print(line, end="", flush=True)
            finally:
                stream.close()

        readers = [
            threading.Thread(target=_read_stream, args=(proc.stdout, stdout_buf), daemon=True),
            threading.Thread(target=_read_stream, args=(proc.stderr, stderr_buf), daemon=True),
        ]
        for t in readers:
            t.start()

        timed_out = False
        try:
            proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            timed_out = True
            _kill_group(proc)
        for t in readers:
            # Pipes stay open while any process that inherited them is alive.
            t.join(timeout=KILL_GRACE if timed_out else None)

        result = CommandResult(
            cmd=argv,
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout="".join(stdout_buf).strip(),
            stderr="".join(stderr_buf).strip(),
            duration=time.time() - start,
        )
        if timed_out:
            raise InstallError(f"'{' '.join(argv)}' timed out after {timeout:.0f}s", returncode=result.returncode, stderr=result.stderr)
        if check and not result.ok:
            raise InstallError(_failure_message(result), returncode=result.returncode, stderr=result.stderr)
        return result


def _signal_group(pgid: int, sig: int) -> None:
    try:
        os.killpg(pgid, sig)
    except ProcessLookupError:
        pass
    except PermissionError:
        # Members running as root under sudo; sudo relays SIGTERM to them.
        logger.debug("cannot signal every process in group %d", pgid)


def _kill_group(proc: subprocess.Popen) -> None:
    """SIGTERM the command's process group, then SIGKILL what is left after KILL_GRACE."""
    _signal_group(proc.pid, signal.SIGTERM)
    try:
        proc.wait(timeout=KILL_GRACE)
    except subprocess.TimeoutExpired:
        pass
    _signal_group(proc.pid, signal.SIGKILL)
    try:
        proc.wait(timeout=KILL_GRACE)
    except subprocess.TimeoutExpired:
        logger.warning("process %d did not exit after SIGKILL", proc.pid)


def _failure_message(result: CommandResult) -> str:
    msg = f"'{' '.join(result.cmd)}' exited with code {result.returncode}"
    if result.stderr:
        tail = result.stderr.strip().splitlines()[-1]
        msg += f": {tail}"
    return msg
