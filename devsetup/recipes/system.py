from __future__ import annotations

from ..apt import AptPackagesStep, AptRepository, ServiceStep
from ..context import Context
from ..step import CommandStep, Step


BASE_PACKAGES = [
    "curl",
    "wget",
    "git",
    "apt-transport-https",
    "software-properties-common",
    "ca-certificates",
    "gnupg",
    "lsb-release",
    "build-essential",
]

MEGASYNC_DEB_URL = "https://mega.nz/linux/repo/Debian_12/amd64/megasync-Debian_12_amd64.deb"
OH_MY_ZSH_INSTALLER = "https://raw.githubusercontent.com/ohmyzsh/ohmyzsh/master/tools/install.sh"


def base_packages() -> AptPackagesStep:
    # Everything after this relies on curl, gpg and git.
    return AptPackagesStep("Base packages", BASE_PACKAGES, fatal=True)


def github_cli() -> AptPackagesStep:
    keyring = "/usr/share/keyrings/githubcli-archive-keyring.gpg"
    repo = AptRepository(
        name="github-cli",
        key_url="https://cli.github.com/packages/githubcli-archive-keyring.gpg",
        keyring=keyring,
        source=f"deb [arch=$(dpkg --print-architecture) signed-by={keyring}] https://cli.github.com/packages stable main",
        dearmor=False,
    )
    return AptPackagesStep("GitHub CLI", ["gh"], commands=["gh"], repository=repo, version_cmd=["gh", "--version"])


def megasync(url: str = MEGASYNC_DEB_URL) -> CommandStep:
    deb = "/tmp/megasync.deb"
    return CommandStep(
        "MEGAsync",
        commands=["megasync"],
        install_cmds=[
            ["curl", "-fsSL", "-o", deb, url],
            ["apt-get", "install", "-y", deb],
            ["rm", "-f", deb],
        ],
        sudo=True,
    )


def java() -> AptPackagesStep:
    return AptPackagesStep("Java JRE", ["default-jre"], commands=["java"], version_cmd=["java", "-version"])


def php() -> AptPackagesStep:
    return AptPackagesStep(
        "PHP",
        ["php", "php-cli", "php-fpm", "php-mysql", "php-pgsql", "php-curl", "php-gd", "php-mbstring", "php-xml", "php-zip"],
        commands=["php"],
        version_cmd=["php", "-v"],
    )


def nginx() -> AptPackagesStep:
    return AptPackagesStep("Nginx", ["nginx"], commands=["nginx"], services=["nginx"], version_cmd=["nginx", "-v"])


def nginx_service() -> ServiceStep:
    # Starts nginx on re-runs where it was installed but left stopped.
    return ServiceStep("Nginx service", "nginx")


class DockerStep(AptPackagesStep):
    """Docker Engine from download.docker.com; adds the invoking user to the docker group."""

    def __init__(self, name: str = "Docker") -> None:
        repo = AptRepository(
            name="docker",
            key_url="https://download.docker.com/linux/debian/gpg",
            keyring="/etc/apt/keyrings/docker.asc",
            source=(
                "deb [arch=$(dpkg --print-architecture) signed-by=/etc/apt/keyrings/docker.asc] "
                "https://download.docker.com/linux/debian $(. /etc/os-release && echo $VERSION_CODENAME) stable"
            ),
            dearmor=False,
        )
        super().__init__(
            name,
            ["docker-ce", "docker-ce-cli", "containerd.io", "docker-buildx-plugin", "docker-compose-plugin"],
            commands=["docker"],
            repository=repo,
            services=["docker"],
            version_cmd=["docker", "--version"],
        )

    def install(self, ctx: Context) -> None:
        super().install(ctx)
        ctx.run(["usermod", "-aG", "docker", ctx.user], sudo=True)


def zsh() -> AptPackagesStep:
    return AptPackagesStep("Zsh", ["zsh"], commands=["zsh"], version_cmd=["zsh", "--version"])


class OhMyZshStep(Step):
    def __init__(self, name: str = "oh-my-zsh", installer_url: str = OH_MY_ZSH_INSTALLER) -> None:
        super().__init__(name)
        self.installer_url = installer_url

    def is_present(self, ctx: Context) -> bool:
        return ctx.exists("~/.oh-my-zsh")

    def install(self, ctx: Context) -> None:
        # --unattended keeps the installer from switching shells or starting zsh
        ctx.shell(f'sh -c "$(curl -fsSL {self.installer_url})" "" --unattended')
