from __future__ import annotations

from pathlib import Path
from typing import List

from ..apt import AptPackagesStep, AptRepository
from ..context import Context
from ..step import CommandStep, Step


NEOVIM_TARBALL_URL = "https://github.com/neovim/neovim/releases/latest/download/nvim-linux-x86_64.tar.gz"
NEOVIM_PREFIX = "/usr/local/nvim"
LAZYVIM_STARTER = "https://github.com/LazyVim/starter"


def vscode() -> AptPackagesStep:
    repo = AptRepository(
        name="vscode",
        key_url="https://packages.microsoft.com/keys/microsoft.asc",
        keyring="/etc/apt/keyrings/packages.microsoft.gpg",
        source=(
            "deb [arch=amd64,arm64,armhf signed-by=/etc/apt/keyrings/packages.microsoft.gpg] "
            "https://packages.microsoft.com/repos/code stable main"
        ),
    )
    return AptPackagesStep("VSCode", ["code"], commands=["code"], repository=repo, version_cmd=["code", "--version"])


def neovim(url: str = NEOVIM_TARBALL_URL) -> CommandStep:
    """Latest stable Neovim from the upstream release tarball, linked into /usr/local/bin."""
    archive = "/tmp/nvim-linux-x86_64.tar.gz"
    return CommandStep(
        "Neovim",
        commands=["nvim"],
        install_cmds=[
            ["curl", "-fsSL", "-o", archive, url],
            ["tar", "xzf", archive, "-C", "/tmp"],
            ["rm", "-rf", NEOVIM_PREFIX],
            ["mv", "/tmp/nvim-linux-x86_64", NEOVIM_PREFIX],
            ["ln", "-sf", f"{NEOVIM_PREFIX}/bin/nvim", "/usr/local/bin/nvim"],
            ["rm", "-f", archive],
        ],
        version_cmd=["nvim", "--version"],
        sudo=True,
    )


def neovim_tools() -> AptPackagesStep:
    return AptPackagesStep("Neovim tools", ["ripgrep", "fd-find", "fzf"])


class LazyVimStep(Step):
    """Clone the LazyVim starter into ~/.config/nvim.

    Leftover Neovim state directories are moved aside to *.backup first so
    the starter bootstraps cleanly.
    """

    state_dirs = ("~/.local/share/nvim", "~/.local/state/nvim", "~/.cache/nvim")

    def __init__(self, name: str = "LazyVim", repo_url: str = LAZYVIM_STARTER) -> None:
        super().__init__(name)
        self.repo_url = repo_url

    def config_dir(self, ctx: Context) -> Path:
        return ctx.expand("~/.config/nvim")

    def is_present(self, ctx: Context) -> bool:
        return ctx.exists(self.config_dir(ctx))

    def install(self, ctx: Context) -> None:
        for d in self.backups(ctx):
            ctx.run(["mv", d, f"{d}.backup"])
        target = str(self.config_dir(ctx))
        ctx.run(["git", "clone", self.repo_url, target])
        ctx.run(["rm", "-rf", f"{target}/.git"])

    def backups(self, ctx: Context) -> List[str]:
        return [str(ctx.expand(d)) for d in self.state_dirs if ctx.exists(ctx.expand(d))]

    def version(self, ctx: Context) -> str:
        return f"config at {self.config_dir(ctx)}"
