"""Tests for the run report model and its plain-text rendering"""
import json

import pytest

from devsetup.report import DEFAULT_POST_INSTALL, Reporter, render
from devsetup.result import Outcome, RunReport, RunState, StepResult


@pytest.fixture
def mixed_report():
    return RunReport(
        results=(
            StepResult("VSCode", Outcome.SKIPPED, "1.95.3"),
            StepResult("Node.js", Outcome.INSTALLED, "v22.11.0 (npm 10.9.0)"),
            StepResult("MEGAsync", Outcome.FAILED, "'apt-get install -y /tmp/megasync.deb' exited with code 100"),
            StepResult("PM2", Outcome.INSTALLED, ""),
        ),
        state=RunState.COMPLETED,
    )


class TestRunReport:
    def test_outcome_views(self, mixed_report):
        assert [r.step_name for r in mixed_report.skipped] == ["VSCode"]
        assert [r.step_name for r in mixed_report.installed] == ["Node.js", "PM2"]
        assert [r.step_name for r in mixed_report.failed] == ["MEGAsync"]
        assert mixed_report.aborted is False
        assert mixed_report.get("missing") is None

    def test_results_are_immutable(self, mixed_report):
        with pytest.raises(AttributeError):
            mixed_report.results[0].outcome = Outcome.FAILED
        with pytest.raises(AttributeError):
            mixed_report.state = RunState.ABORTED

    def test_to_dict_is_json_serializable(self, mixed_report):
        data = json.loads(json.dumps(mixed_report.to_dict()))
        assert data["state"] == "completed"
        assert data["results"][1] == {"step": "Node.js", "outcome": "installed", "detail": "v22.11.0 (npm 10.9.0)"}


class TestReporter:
    def test_render_is_deterministic(self, mixed_report):
        equal_copy = RunReport(results=tuple(mixed_report.results), state=RunState.COMPLETED)
        assert render(mixed_report) == render(mixed_report)
        assert render(mixed_report) == render(equal_copy)

    def test_render_snapshot(self, mixed_report):
        text = Reporter(post_install=["Authenticate GitHub CLI: 'gh auth login'"]).render(mixed_report)
        assert text == (
            "==========================================\n"
            "Installation Complete!\n"
            "==========================================\n"
            "\n"
            "Results:\n"
            "  [SKIPPED]   VSCode: 1.95.3\n"
            "  [INSTALLED] Node.js: v22.11.0 (npm 10.9.0)\n"
            "  [FAILED]    MEGAsync: 'apt-get install -y /tmp/megasync.deb' exited with code 100\n"
            "  [INSTALLED] PM2\n"
            "\n"
            "Summary: 2 installed, 1 skipped, 1 failed\n"
            "\n"
            "Post-installation steps:\n"
            "  1. Authenticate GitHub CLI: 'gh auth login'\n"
        )

    def test_default_post_install_notes(self, mixed_report):
        text = render(mixed_report)
        assert "Post-installation steps:" in text
        for i, note in enumerate(DEFAULT_POST_INSTALL, start=1):
            assert f"  {i}. {note}" in text

    def test_aborted_report_names_failed_step(self):
        report = RunReport(
            results=(StepResult("Base packages", Outcome.FAILED, "no network"),),
            state=RunState.ABORTED,
            failed_step="Base packages",
        )
        text = render(report, post_install=[])
        assert text.startswith("=" * 42 + "\nInstallation Aborted!\n")
        assert "Aborted: fatal step 'Base packages' failed; later steps were not run." in text
        assert "Post-installation steps:" not in text

    def test_cancelled_report(self):
        report = RunReport(results=(), state=RunState.CANCELLED)
        text = render(report)
        assert "Installation Cancelled!" in text
        assert "No steps were run." in text
        assert "Cancelled: remaining steps were not run." in text
        assert "Summary: 0 installed, 0 skipped, 0 failed" in text
