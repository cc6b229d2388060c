from __future__ import annotations

import shlex

from ..apt import apt_install
from ..context import CommandResult, Context
from ..step import Step


NVM_VERSION = "v0.40.1"
NODESOURCE_SETUP = "https://deb.nodesource.com/setup_lts.x"


def nvm_script(ctx: Context) -> str:
    return str(ctx.expand("~/.nvm/nvm.sh"))


def nvm_shell(ctx: Context, script: str, check: bool = True) -> CommandResult:
    """Run `script` in bash with nvm loaded when it is installed."""
    nvm = nvm_script(ctx)
    prelude = f'export NVM_DIR="$HOME/.nvm"; [ -s {shlex.quote(nvm)} ] && . {shlex.quote(nvm)}; '
    return ctx.shell(prelude + script, check=check)


class NvmStep(Step):
    def __init__(self, name: str = "NVM", nvm_version: str = NVM_VERSION) -> None:
        super().__init__(name)
        self.nvm_version = nvm_version

    def is_present(self, ctx: Context) -> bool:
        return ctx.exists(nvm_script(ctx))

    def install(self, ctx: Context) -> None:
        url = f"https://raw.githubusercontent.com/nvm-sh/nvm/{self.nvm_version}/install.sh"
        ctx.shell(f"set -o pipefail; curl -fsSL {shlex.quote(url)} | bash")

    def version(self, ctx: Context) -> str:
        return nvm_shell(ctx, "nvm --version", check=False).first_line()


class NodeStep(Step):
    """Node.js through nvm, falling back to the NodeSource apt repository."""

    def __init__(self, name: str = "Node.js", node_version: str = "lts/*") -> None:
        super().__init__(name)
        self.node_version = node_version

    def is_present(self, ctx: Context) -> bool:
        return nvm_shell(ctx, "command -v node", check=False).ok

    def install(self, ctx: Context) -> None:
        if ctx.exists(nvm_script(ctx)):
            v = shlex.quote(self.node_version)
            nvm_shell(ctx, f"nvm install {v} && nvm use {v} && nvm alias default {v}")
            return
        ctx.shell(f"set -o pipefail; curl -fsSL {NODESOURCE_SETUP} | bash -", sudo=True)
        apt_install(ctx, ["nodejs"])

    def version(self, ctx: Context) -> str:
        cp = nvm_shell(ctx, 'echo "$(node --version) (npm $(npm --version))"', check=False)
        return cp.first_line() if cp.ok else ""


class NpmGlobalStep(Step):
    """Globally installed npm package exposing `command`."""

    def __init__(self, name: str, package: str, command: str) -> None:
        super().__init__(name)
        self.package = package
        self.command = command

    def is_present(self, ctx: Context) -> bool:
        return nvm_shell(ctx, f"command -v {shlex.quote(self.command)}", check=False).ok

    def install(self, ctx: Context) -> None:
        nvm_shell(ctx, f"npm install -g {shlex.quote(self.package)}")

    def version(self, ctx: Context) -> str:
        return nvm_shell(ctx, f"{shlex.quote(self.command)} --version", check=False).first_line()


def pm2() -> NpmGlobalStep:
    return NpmGlobalStep("PM2", "pm2", "pm2")
