"""Workstation recipes: one Step per tool installed by devsetup."""

from .databases import PostgresStep, mariadb
from .editors import LazyVimStep, neovim, neovim_tools, vscode
from .node import NodeStep, NpmGlobalStep, NvmStep, pm2
from .python import PipUserPackageStep, PythonStep, mysql_connector, pynvim
from .system import DockerStep, OhMyZshStep, base_packages, github_cli, java, megasync, nginx, nginx_service, php, zsh

__all__ = [
    "DockerStep",
    "LazyVimStep",
    "NodeStep",
    "NpmGlobalStep",
    "NvmStep",
    "OhMyZshStep",
    "PipUserPackageStep",
    "PostgresStep",
    "PythonStep",
    "base_packages",
    "github_cli",
    "java",
    "mariadb",
    "megasync",
    "mysql_connector",
    "neovim",
    "neovim_tools",
    "nginx",
    "nginx_service",
    "php",
    "pm2",
    "pynvim",
    "vscode",
    "zsh",
]
