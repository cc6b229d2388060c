"""apt/dpkg and systemd helpers shared by the recipes."""
from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .context import Context
from .step import Step


logger = logging.getLogger(__name__)

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}
KEYRING_DIR = "/etc/apt/keyrings"
SOURCES_DIR = "/etc/apt/sources.list.d"


def apt_update(ctx: Context) -> None:
    ctx.run(["apt-get", "update"], sudo=True, env=APT_ENV)


def apt_install(ctx: Context, packages: Sequence[str]) -> None:
    ctx.run(["apt-get", "install", "-y", *packages], sudo=True, env=APT_ENV)


def dpkg_installed(ctx: Context, package: str) -> bool:
    cp = ctx.run(["dpkg-query", "-W", "-f=${Status}", package], check=False)
    return cp.ok and cp.stdout.strip().endswith("ok installed")


def dpkg_version(ctx: Context, package: str) -> str:
    cp = ctx.run(["dpkg-query", "-W", "-f=${Version}", package], check=False)
    return cp.stdout.strip() if cp.ok else ""


@dataclass
class AptRepository:
    """Third-party apt source with its signing key.

    `source` may contain shell substitutions such as $(lsb_release -cs); it is
    expanded by bash when the list file is written.
    """

    name: str
    key_url: str
    source: str
    keyring: Optional[str] = None
    dearmor: bool = True

    @property
    def keyring_path(self) -> str:
        return self.keyring or f"{KEYRING_DIR}/{self.name}.gpg"

    @property
    def list_path(self) -> str:
        return f"{SOURCES_DIR}/{self.name}.list"

    def is_registered(self, ctx: Context) -> bool:
        return ctx.exists(self.list_path) and ctx.exists(self.keyring_path)

    def register(self, ctx: Context) -> None:
        keyring = shlex.quote(self.keyring_path)
        fetch = f"curl -fsSL {shlex.quote(self.key_url)}"
        if self.dearmor:
            fetch += " | gpg --dearmor --yes"
        script = "\n".join(
            [
                "set -euo pipefail",
                f"install -m 0755 -d $(dirname {keyring})",
                f"{fetch} > {keyring}",
                f"chmod a+r {keyring}",
                f'echo "{self.source}" > {shlex.quote(self.list_path)}',
            ]
        )
        ctx.shell(script, sudo=True)
        apt_update(ctx)


class AptPackagesStep(Step):
    """Install apt packages, optionally from a third-party repository.

    Present when any of `commands` is on PATH, or, without commands, when
    every package is installed according to dpkg. `services` are enabled and
    started after install when systemd is running.
    """

    def __init__(
        self,
        name: str,
        packages: Sequence[str],
        commands: Optional[Sequence[str]] = None,
        repository: Optional[AptRepository] = None,
        services: Optional[Sequence[str]] = None,
        version_cmd: Optional[Sequence[str]] = None,
        fatal: bool = False,
    ) -> None:
        super().__init__(name, fatal=fatal)
        self.packages = list(packages)
        self.commands = list(commands or [])
        self.repository = repository
        self.services = list(services or [])
        self.version_cmd = list(version_cmd) if version_cmd else None

    def is_present(self, ctx: Context) -> bool:
        if self.commands:
            return ctx.has_any(*self.commands)
        return all(dpkg_installed(ctx, p) for p in self.packages)

    def install(self, ctx: Context) -> None:
        if self.repository and not self.repository.is_registered(ctx):
            self.repository.register(ctx)
        apt_install(ctx, self.packages)
        for service in self.services:
            enable_service(ctx, service)

    def version(self, ctx: Context) -> str:
        if self.version_cmd:
            return ctx.run(self.version_cmd, check=False).first_line()
        return dpkg_version(ctx, self.packages[0]) if self.packages else ""


def systemd_running(ctx: Context) -> bool:
    if not ctx.which("systemctl"):
        return False
    cp = ctx.run(["systemctl", "is-system-running"], check=False)
    return cp.ok or cp.stdout.strip() == "degraded"


def enable_service(ctx: Context, service: str) -> bool:
    """Enable and start `service`. Returns False when systemd is unavailable."""
    if not systemd_running(ctx):
        logger.warning("systemd not available, skipping %s service start", service)
        return False
    ctx.run(["systemctl", "enable", "--now", service], sudo=True)
    return True


def packages_missing(ctx: Context, packages: Sequence[str]) -> List[str]:
    return [p for p in packages if not dpkg_installed(ctx, p)]


class ServiceStep(Step):
    """Keep a systemd service running.

    Present when the service's process is running, or when systemd is not
    available (containers), in which case there is nothing to start.
    """

    def __init__(self, name: str, service: str, process: Optional[str] = None, fatal: bool = False) -> None:
        super().__init__(name, fatal=fatal)
        self.service = service
        self.process = process or service

    def running(self, ctx: Context) -> bool:
        return ctx.run(["pgrep", "-x", self.process], check=False).ok

    def is_present(self, ctx: Context) -> bool:
        return self.running(ctx) or not systemd_running(ctx)

    def install(self, ctx: Context) -> None:
        ctx.run(["systemctl", "start", self.service], sudo=True)

    def version(self, ctx: Context) -> str:
        return "running" if self.running(ctx) else "systemd not available"
