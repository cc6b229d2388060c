"""Tests for the subprocess-backed SystemContext"""
import os
import time
from pathlib import Path

import pytest

from devsetup.context import KILL_GRACE, CommandResult, SystemContext
from devsetup.errors import InstallError


@pytest.fixture
def ctx(temp_dir):
    env = dict(os.environ)
    env["HOME"] = str(temp_dir)
    env["USER"] = "dev"
    return SystemContext(env=env, timeout=30)


class TestSystemContext:
    def test_identity_from_env(self, ctx, temp_dir):
        assert ctx.home == temp_dir
        assert ctx.user == "dev"
        assert ctx.expand("~/.nvm/nvm.sh") == temp_dir / ".nvm" / "nvm.sh"
        assert ctx.expand("/etc/apt") == Path("/etc/apt")

    def test_run_captures_output(self, ctx):
        result = ctx.run(["sh", "-c", "echo hello; echo oops >&2"])
        assert result.ok
        assert result.stdout == "hello"
        assert result.stderr == "oops"
        assert result.first_line() == "hello"

    def test_non_zero_exit_raises(self, ctx):
        with pytest.raises(InstallError) as exc:
            ctx.run(["sh", "-c", "echo 'E: Unable to locate package nope' >&2; exit 100"])
        assert exc.value.returncode == 100
        assert "exited with code 100" in str(exc.value)
        assert "Unable to locate package nope" in str(exc.value)

    def test_check_false_returns_result(self, ctx):
        result = ctx.run(["sh", "-c", "exit 3"], check=False)
        assert result.returncode == 3
        assert not result.ok

    def test_timeout_kills_and_raises(self, ctx):
        with pytest.raises(InstallError, match="timed out"):
            ctx.run(["sleep", "5"], timeout=0.2)

    def test_timeout_kills_child_processes_too(self, ctx):
        """A shell wrapper must not keep the run alive until its children exit"""
        start = time.monotonic()
        with pytest.raises(InstallError, match="timed out"):
            ctx.run(["bash", "-c", "sleep 6; echo done"], timeout=0.5)
        assert time.monotonic() - start < 4

    def test_timeout_escalates_to_sigkill(self, ctx):
        start = time.monotonic()
        with pytest.raises(InstallError, match="timed out"):
            ctx.run(["bash", "-c", "trap '' TERM; sleep 20"], timeout=0.5)
        assert time.monotonic() - start < 4 + KILL_GRACE

    def test_child_runs_in_its_own_process_group(self, ctx):
        result = ctx.run(["sh", "-c", "cut -d' ' -f5 /proc/$$/stat"])
        assert int(result.stdout) != os.getpgrp()

    def test_sudo_refreshes_credentials_then_never_prompts(self, ctx, temp_dir, monkeypatch):
        bin_dir = temp_dir / "bin"
        bin_dir.mkdir()
        fake_sudo = bin_dir / "sudo"
        fake_sudo.write_text('#!/bin/sh\nprintf "%s\\n" "$*"\n')
        fake_sudo.chmod(0o755)
        ctx.env["PATH"] = f"{bin_dir}:{ctx.env.get('PATH', '')}"
        refreshed = []
        monkeypatch.setattr(ctx, "authenticate", lambda: refreshed.append(True))
        monkeypatch.setattr("devsetup.context.os.geteuid", lambda: 1000)

        result = ctx.run(["apt-get", "update"], sudo=True)
        assert refreshed == [True]
        assert result.stdout == "-n -E apt-get update"

    def test_missing_executable_raises(self, ctx):
        with pytest.raises(InstallError, match="cannot execute"):
            ctx.run(["definitely-not-a-real-binary-xyz"])

    def test_shell_and_env(self, ctx):
        result = ctx.run(["sh", "-c", 'echo "$DEVSETUP_TEST"'], env={"DEVSETUP_TEST": "42"})
        assert result.stdout == "42"
        assert ctx.shell("echo $HOME").stdout == str(ctx.home)

    def test_which_and_exists(self, ctx, temp_dir):
        assert ctx.which("sh")
        assert ctx.which("definitely-not-a-real-binary-xyz") is None
        (temp_dir / ".oh-my-zsh").mkdir()
        assert ctx.exists("~/.oh-my-zsh")
        assert ctx.has_any("definitely-not-a-real-binary-xyz", "sh")

    def test_empty_command_rejected(self, ctx):
        with pytest.raises(ValueError):
            ctx.run([])

    def test_first_line_of_empty_output(self):
        assert CommandResult(cmd=["x"], returncode=0).first_line() == ""
