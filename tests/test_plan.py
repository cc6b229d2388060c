"""Tests for environment validation, privilege guard, runtime and Plan"""
import pytest

from devsetup.envvalidate import (
    EnvVarValidator,
    ToolValidator,
    check_privileges,
    default_validators,
)
from devsetup.errors import EnvironmentCheckError, InstallError, PrivilegeGuardError
from devsetup.plan import PROVISION_STEP, Plan
from devsetup.result import Outcome, RunState
from devsetup.runtime import AptRuntime, NullRuntime, Runtime

from fakes import FakeContext, fail


class RecordingRuntime(Runtime):
    def __init__(self, fail_provision=False):
        self.calls = []
        self.fail_provision = fail_provision

    def provision(self, ctx):
        self.calls.append("provision")
        if self.fail_provision:
            raise InstallError("apt-get update exited with code 100")

    def teardown(self, ctx):
        self.calls.append("teardown")


class TestPrivilegeGuard:
    def test_root_is_refused(self):
        with pytest.raises(PrivilegeGuardError, match="should not be run as root"):
            check_privileges(geteuid=lambda: 0)

    def test_normal_user_allowed(self):
        assert check_privileges(geteuid=lambda: 1000) is None


class TestValidators:
    def test_env_var_validator(self):
        ctx = FakeContext()
        ctx.env["EMPTY"] = "  "
        issues = EnvVarValidator(["HOME", "EMPTY", "NOPE"]).run(ctx)
        assert [(i.kind, i.name) for i in issues] == [("env_var_missing", "EMPTY"), ("env_var_missing", "NOPE")]

    def test_tool_validator_missing_tool(self):
        ctx = FakeContext(commands=["sudo"])
        issues = ToolValidator(["sudo", "apt-get"]).run(ctx)
        assert [(i.kind, i.name) for i in issues] == [("tool_missing", "apt-get")]

    def test_default_validators_on_debian_like_machine(self):
        ctx = FakeContext(commands=["sudo", "apt-get", "dpkg-query"])
        assert [i for v in default_validators() for i in v.run(ctx)] == []

    def test_default_validators_report_every_gap(self):
        ctx = FakeContext(commands=["sudo"])
        ctx.env.pop("USER")
        issues = [i for v in default_validators() for i in v.run(ctx)]
        assert [(i.kind, i.name) for i in issues] == [
            ("env_var_missing", "USER"),
            ("tool_missing", "apt-get"),
            ("tool_missing", "dpkg-query"),
        ]


class TestAptRuntime:
    def test_provision_updates_and_upgrades(self, fake_ctx):
        AptRuntime(upgrade=True).provision(fake_ctx)
        assert fake_ctx.sudo_calls() == ["apt-get update", "apt-get upgrade -y"]

    def test_provision_without_upgrade(self, fake_ctx):
        AptRuntime(upgrade=False).provision(fake_ctx)
        assert fake_ctx.sudo_calls() == ["apt-get update"]

    def test_provision_failure_raises(self):
        ctx = FakeContext().on("apt-get update", fail(100))
        with pytest.raises(InstallError):
            AptRuntime().provision(ctx)

    def test_teardown_failures_are_logged_not_raised(self, caplog):
        ctx = FakeContext().on("autoremove", fail(1, "lock held"))
        AptRuntime().teardown(ctx)
        assert ctx.ran("apt-get clean")
        assert "cleanup step failed" in caplog.text


class TestPlan:
    def test_execute_runs_steps_between_provision_and_teardown(self, fake_ctx, machine):
        runtime = RecordingRuntime()
        plan = Plan([machine.tool("A"), machine.tool("B")], fake_ctx, runtime=runtime, guard=None)
        report = plan.execute()
        assert report.state is RunState.COMPLETED
        assert [r.outcome for r in report.results] == [Outcome.INSTALLED, Outcome.INSTALLED]
        assert runtime.calls == ["provision", "teardown"]

    def test_guard_runs_first(self, fake_ctx, machine):
        def guard():
            raise PrivilegeGuardError("root")

        runtime = RecordingRuntime()
        plan = Plan([machine.tool("A")], fake_ctx, runtime=runtime, guard=guard)
        with pytest.raises(PrivilegeGuardError):
            plan.execute()
        assert runtime.calls == []
        assert machine.install_calls == []

    def test_invalid_environment_raises_with_all_issues(self, fake_ctx, machine):
        plan = Plan(
            [machine.tool("A")],
            fake_ctx,
            validators=[EnvVarValidator(["MISSING_ONE"]), ToolValidator(["apt-get"])],
            guard=None,
        )
        with pytest.raises(EnvironmentCheckError) as exc:
            plan.execute()
        assert len(exc.value.issues) == 2
        assert "MISSING_ONE" in str(exc.value)
        assert machine.install_calls == []

    def test_broken_validator_is_reported(self, fake_ctx, machine):
        class Broken(EnvVarValidator):
            def run(self, ctx):
                raise RuntimeError("cannot read env")

        plan = Plan([machine.tool("A")], fake_ctx, validators=[Broken([])], guard=None)
        env = plan.validate_environment()
        assert env["status"] == "invalid_env"
        assert env["issues"][0].kind == "validator_error"

    def test_provision_failure_aborts_without_running_steps(self, fake_ctx, machine):
        runtime = RecordingRuntime(fail_provision=True)
        report = Plan([machine.tool("A")], fake_ctx, runtime=runtime, guard=None).execute()
        assert report.state is RunState.ABORTED
        assert report.failed_step == PROVISION_STEP
        assert [r.step_name for r in report.results] == [PROVISION_STEP]
        assert machine.install_calls == []
        assert runtime.calls == ["provision"]

    def test_teardown_runs_after_fatal_abort(self, fake_ctx, machine):
        runtime = RecordingRuntime()
        report = Plan([machine.tool("A", fails=True, fatal=True)], fake_ctx, runtime=runtime, guard=None).execute()
        assert report.aborted
        assert runtime.calls == ["provision", "teardown"]

    def test_check_does_not_install(self, fake_ctx, machine):
        machine.installed.add("A")
        plan = Plan([machine.tool("A", version="1.0"), machine.tool("B", fatal=True)], fake_ctx, runtime=NullRuntime(), guard=None)
        rows = plan.check()
        assert rows == [
            {"step": "A", "present": True, "fatal": False, "detail": "1.0"},
            {"step": "B", "present": False, "fatal": True, "detail": ""},
        ]
        assert machine.install_calls == []

    def test_cancel_during_provision_runs_no_steps(self, fake_ctx, machine):
        class CancellingRuntime(RecordingRuntime):
            def provision(self, ctx):
                super().provision(ctx)
                plan.runner.cancel()

        runtime = CancellingRuntime()
        plan = Plan([machine.tool("A"), machine.tool("B")], fake_ctx, runtime=runtime, guard=None)
        report = plan.execute()
        assert report.state is RunState.CANCELLED
        assert report.results == ()
        assert machine.install_calls == []
        assert runtime.calls == ["provision", "teardown"]
