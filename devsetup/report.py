from __future__ import annotations

from typing import List, Optional, Sequence

from .result import RunReport, RunState


DEFAULT_POST_INSTALL: List[str] = [
    "Restart your terminal or run: source ~/.bashrc (or ~/.zshrc)",
    "To set Zsh as default shell: chsh -s $(which zsh)",
    "Log out and back in for Docker group to take effect",
    "Run 'sudo mysql_secure_installation' to secure MariaDB",
    "Configure PostgreSQL: 'sudo -u postgres psql'",
    "Authenticate GitHub CLI: 'gh auth login'",
    "Run 'nvim' to complete LazyVim plugin installation",
    "Verify NVM: 'nvm --version' and 'node --version'",
    "Test Python venv: 'python3 -m venv test_env && source test_env/bin/activate'",
]

RULE = "=" * 42

_HEADLINES = {
    RunState.COMPLETED: "Installation Complete!",
    RunState.ABORTED: "Installation Aborted!",
    RunState.CANCELLED: "Installation Cancelled!",
}


class Reporter:
    """Render a RunReport as a plain-text summary.

    Output depends only on the report and the configured notes, so the same
    report always renders to the same text.
    """

    def __init__(self, post_install: Optional[Sequence[str]] = None) -> None:
        self.post_install = list(DEFAULT_POST_INSTALL if post_install is None else post_install)

    def render(self, report: RunReport) -> str:
        lines: List[str] = [RULE, _HEADLINES.get(report.state, f"Installation {report.state.value}"), RULE, ""]

        if report.results:
            lines.append("Results:")
            width = max(len(r.outcome.value) for r in report.results) + 2
            for r in report.results:
                label = f"[{r.outcome.value.upper()}]"
                line = f"  {label:<{width}} {r.step_name}"
                if r.detail:
                    line += f": {r.detail}"
                lines.append(line)
        else:
            lines.append("No steps were run.")
        lines.append("")

        if report.state is RunState.ABORTED:
            lines.append(f"Aborted: fatal step '{report.failed_step}' failed; later steps were not run.")
            lines.append("")
        elif report.state is RunState.CANCELLED:
            lines.append("Cancelled: remaining steps were not run.")
            lines.append("")

        lines.append(
            f"Summary: {len(report.installed)} installed, {len(report.skipped)} skipped, {len(report.failed)} failed"
        )

        if self.post_install:
            lines.append("")
            lines.append("Post-installation steps:")
            for i, note in enumerate(self.post_install, start=1):
                lines.append(f"  {i}. {note}")
        return "\n".join(lines) + "\n"


def render(report: RunReport, post_install: Optional[Sequence[str]] = None) -> str:
    return Reporter(post_install).render(report)
