from __future__ import annotations

import json
import signal
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from .catalog import build_steps
from .config import Config
from .context import SystemContext
from .envvalidate import check_privileges, default_validators
from .errors import EnvironmentCheckError, PrivilegeGuardError
from .hook import LogHook
from .log import setup_logging
from .plan import Plan
from .report import Reporter
from .result import RunState
from .runtime import AptRuntime


EXIT_OK = 0
EXIT_GUARD = 1
EXIT_FATAL = 2
EXIT_CANCELLED = 130

app = typer.Typer(name="devsetup", help="Provision a Debian-family development workstation.")
console = Console()


def _load_config(config_path: Optional[Path]) -> Config:
    return Config.discover(explicit=config_path)


def _build_plan(config: Config, skip: List[str], only: List[str], upgrade: bool, show: bool) -> Plan:
    ctx = SystemContext(timeout=config.command_timeout, show=show)
    return Plan(
        build_steps(config, skip=skip, only=only),
        ctx,
        runtime=AptRuntime(upgrade=upgrade and config.upgrade),
        hook=LogHook(),
        validators=default_validators(),
        guard=check_privileges,
    )


def cmd_run(
    config_path: Optional[Path] = None,
    skip: Optional[List[str]] = None,
    only: Optional[List[str]] = None,
    upgrade: bool = True,
    show: bool = False,
    as_json: bool = False,
) -> int:
    try:
        config = _load_config(config_path)
        plan = _build_plan(config, skip or [], only or [], upgrade, show)
    except Exception as e:  # noqa: BLE001
        typer.echo(f"Error: {e}", err=True)
        return EXIT_FATAL

    def _on_sigint(signum, frame):  # noqa: ARG001
        typer.echo("\nInterrupted: stopping after the current step.", err=True)
        plan.runner.cancel()

    previous = signal.signal(signal.SIGINT, _on_sigint)
    try:
        report = plan.execute()
    except (PrivilegeGuardError, EnvironmentCheckError) as e:
        typer.echo(f"Error: {e}", err=True)
        return EXIT_GUARD
    except Exception as e:  # noqa: BLE001
        typer.echo(f"Unexpected error: {e}", err=True)
        return EXIT_FATAL
    finally:
        signal.signal(signal.SIGINT, previous)

    if as_json:
        typer.echo(json.dumps(report.to_dict(), indent=2))
    else:
        typer.echo(Reporter(config.post_install).render(report), nl=False)

    if report.state is RunState.ABORTED:
        typer.echo(f"Error: fatal step '{report.failed_step}' failed: {report.error}", err=True)
        return EXIT_FATAL
    if report.state is RunState.CANCELLED:
        return EXIT_CANCELLED
    return EXIT_OK


def cmd_list(config_path: Optional[Path] = None) -> int:
    try:
        config = _load_config(config_path)
        steps = build_steps(config)
    except Exception as e:  # noqa: BLE001
        typer.echo(f"Error: {e}", err=True)
        return EXIT_FATAL
    table = Table(title="Provisioning steps")
    table.add_column("#", justify="right")
    table.add_column("Step")
    table.add_column("Kind")
    table.add_column("Fatal")
    for i, step in enumerate(steps, start=1):
        table.add_row(str(i), step.name, type(step).__name__, "yes" if step.fatal else "no")
    console.print(table)
    return EXIT_OK


def cmd_check(config_path: Optional[Path] = None, skip: Optional[List[str]] = None, only: Optional[List[str]] = None) -> int:
    try:
        config = _load_config(config_path)
        plan = _build_plan(config, skip or [], only or [], upgrade=False, show=False)
        rows = plan.check()
    except Exception as e:  # noqa: BLE001
        typer.echo(f"Error: {e}", err=True)
        return EXIT_FATAL
    table = Table(title="Presence check")
    table.add_column("Step")
    table.add_column("Status")
    table.add_column("Detail")
    for row in rows:
        status = "[green]present[/green]" if row["present"] else "[yellow]missing[/yellow]"
        table.add_row(row["step"], status, row["detail"])
    console.print(table)
    missing = sum(1 for r in rows if not r["present"])
    console.print(f"{len(rows) - missing} present, {missing} would be installed")
    return EXIT_OK


def cmd_config(key: Optional[str], value: Optional[str], config_path: Optional[Path]) -> int:
    """Get or set a value in the selected config file."""
    try:
        config = _load_config(config_path)
        if key and value is not None:
            config.set(key, yaml_scalar(value))
            config.save()
            typer.echo(f"Set {key} = {value} in {config.config_path}")
        elif key:
            current = config.get(key)
            typer.echo(f"{key} = {'(not set)' if current is None else current}")
        else:
            typer.echo(f"Configuration ({config.config_path}):")
            typer.echo(f"  skip: {config.skip}")
            typer.echo(f"  fatal: {config.fatal}")
            typer.echo(f"  command_timeout: {config.command_timeout}")
            typer.echo(f"  upgrade: {config.upgrade}")
            typer.echo(f"  node_version: {config.node_version}")
            typer.echo(f"  nvm_version: {config.nvm_version}")
            typer.echo(f"  postgres_version: {config.postgres_version}")
        return EXIT_OK
    except Exception as e:  # noqa: BLE001
        typer.echo(f"Error: {e}", err=True)
        return EXIT_FATAL


def yaml_scalar(value: str):
    """Parse a CLI value the way it would read in YAML ('false' -> False, '[a, b]' -> list)."""
    return yaml.safe_load(value)


@app.callback(invoke_without_command=True)
def _default(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    setup_logging(verbose=verbose)
    if ctx.invoked_subcommand is None:
        raise typer.Exit(cmd_run())


@app.command("run", help="Install every missing tool, then print a summary")
def run_command(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a devsetup.yaml"),
    skip: List[str] = typer.Option([], "--skip", help="Step name to skip (repeatable)"),
    only: List[str] = typer.Option([], "--only", help="Run only this step (repeatable)"),
    no_upgrade: bool = typer.Option(False, "--no-upgrade", help="Refresh package lists without upgrading"),
    show: bool = typer.Option(False, "--show", help="Stream command output while running"),
    as_json: bool = typer.Option(False, "--json", help="Print the run report as JSON"),
):
    code = cmd_run(config_path=config, skip=skip, only=only, upgrade=not no_upgrade, show=show, as_json=as_json)
    raise typer.Exit(code)


@app.command("list", help="Show the ordered provisioning steps")
def list_command(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a devsetup.yaml"),
):
    raise typer.Exit(cmd_list(config_path=config))


@app.command("check", help="Report which tools are present without installing anything")
def check_command(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a devsetup.yaml"),
    skip: List[str] = typer.Option([], "--skip", help="Step name to skip (repeatable)"),
    only: List[str] = typer.Option([], "--only", help="Check only this step (repeatable)"),
):
    raise typer.Exit(cmd_check(config_path=config, skip=skip, only=only))


@app.command("config", help="Get or set configuration values")
def config_command(
    key: Optional[str] = typer.Argument(None, help="Configuration key"),
    value: Optional[str] = typer.Argument(None, help="Value to set (omit to get current value)"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a devsetup.yaml"),
):
    raise typer.Exit(cmd_config(key, value, config))


def main(argv: list[str] | None = None) -> int:
    try:
        rv = app(args=argv, prog_name="devsetup", standalone_mode=False)
        return rv if isinstance(rv, int) else 0
    except typer.Exit as e:
        return int(e.exit_code or 0)
    except SystemExit as e:
        return int(e.code or 0)
    except Exception as e:  # noqa: BLE001
        if str(e):
            typer.echo(f"Unexpected error: {e}", err=True)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
