"""Default ordered step list for a Debian-family development workstation."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .config import Config
from .recipes import (
    DockerStep,
    LazyVimStep,
    NodeStep,
    NvmStep,
    OhMyZshStep,
    PostgresStep,
    PythonStep,
    base_packages,
    github_cli,
    java,
    mariadb,
    megasync,
    mysql_connector,
    neovim,
    neovim_tools,
    nginx,
    nginx_service,
    php,
    pm2,
    pynvim,
    vscode,
    zsh,
)
from .step import Step


logger = logging.getLogger(__name__)


def default_steps(config: Optional[Config] = None) -> List[Step]:
    """All workstation steps in install order.

    Order matters: base packages provide curl/gpg/git for every repository
    step, nvm precedes Node.js, and Node.js precedes PM2.
    """
    node_version = config.node_version if config else "lts/*"
    nvm_version = config.nvm_version if config else "v0.40.1"
    pg_major = config.postgres_version if config else 17
    return [
        base_packages(),
        vscode(),
        NvmStep(nvm_version=nvm_version),
        NodeStep(node_version=node_version),
        neovim(),
        neovim_tools(),
        LazyVimStep(),
        github_cli(),
        megasync(),
        java(),
        PythonStep(),
        pynvim(),
        mysql_connector(),
        mariadb(),
        PostgresStep(major=pg_major),
        DockerStep(),
        php(),
        pm2(),
        nginx(),
        nginx_service(),
        zsh(),
        OhMyZshStep(),
    ]


def select(
    steps: List[Step],
    skip: Iterable[str] = (),
    only: Iterable[str] = (),
    fatal: Optional[dict] = None,
) -> List[Step]:
    """Filter and adjust a step list by name. Order is always preserved.

    Names are matched case-insensitively; unknown names are logged and ignored.
    """
    by_key = {s.name.lower(): s for s in steps}
    skip_keys = _known(skip, by_key, "skip")
    only_keys = _known(only, by_key, "only")
    for name, value in (fatal or {}).items():
        if name.lower() in by_key:
            by_key[name.lower()].fatal = bool(value)
        else:
            logger.warning("fatal override for unknown step '%s' ignored", name)
    return [
        s
        for s in steps
        if s.name.lower() not in skip_keys and (not only_keys or s.name.lower() in only_keys)
    ]


def build_steps(config: Config, skip: Iterable[str] = (), only: Iterable[str] = ()) -> List[Step]:
    return select(default_steps(config), skip=list(config.skip) + list(skip), only=only, fatal=config.fatal)


def _known(names: Iterable[str], by_key: dict, option: str) -> set:
    keys = set()
    for name in names:
        if name.lower() in by_key:
            keys.add(name.lower())
        else:
            logger.warning("%s: unknown step '%s' ignored", option, name)
    return keys
