from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from .apt import APT_ENV, apt_update
from .context import Context
from .errors import InstallError


logger = logging.getLogger(__name__)


class Runtime(ABC):
    """Work done once around a run rather than per step."""

    @abstractmethod
    def provision(self, ctx: Context) -> None:
        """Prepare the machine before any step runs. Failures are fatal."""

    @abstractmethod
    def teardown(self, ctx: Context) -> None:
        """Clean up after the run. Failures are logged, never raised."""


class NullRuntime(Runtime):
    def provision(self, ctx: Context) -> None:  # noqa: D401 - no-op
        return None

    def teardown(self, ctx: Context) -> None:  # noqa: D401 - no-op
        return None


class AptRuntime(Runtime):
    """Refresh (and optionally upgrade) packages first, autoremove and clean last."""

    def __init__(self, upgrade: bool = True) -> None:
        self.upgrade = upgrade

    def provision(self, ctx: Context) -> None:
        logger.info("Updating system packages...")
        apt_update(ctx)
        if self.upgrade:
            ctx.run(["apt-get", "upgrade", "-y"], sudo=True, env=APT_ENV)

    def teardown(self, ctx: Context) -> None:
        logger.info("Cleaning up...")
        for cmd in (["apt-get", "autoremove", "-y"], ["apt-get", "clean"]):
            try:
                ctx.run(cmd, sudo=True, env=APT_ENV)
            except InstallError as e:
                logger.warning("cleanup step failed: %s", e)
