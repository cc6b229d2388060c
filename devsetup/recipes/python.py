from __future__ import annotations

from typing import Sequence

from ..apt import AptPackagesStep, apt_install, packages_missing
from ..context import Context
from ..step import Step


PYTHON_PACKAGES = ["python3", "python3-pip", "python3-venv"]


class PythonStep(AptPackagesStep):
    """python3 with pip and venv support.

    An existing interpreter is not enough: the step is only present once the
    venv and pip packages are installed too.
    """

    def __init__(self, name: str = "Python", packages: Sequence[str] = PYTHON_PACKAGES) -> None:
        super().__init__(name, packages, version_cmd=["python3", "--version"])

    def is_present(self, ctx: Context) -> bool:
        return bool(ctx.which("python3") and ctx.which("pip3")) and not packages_missing(ctx, self.packages)

    def install(self, ctx: Context) -> None:
        apt_install(ctx, packages_missing(ctx, self.packages) or self.packages)


class PipUserPackageStep(Step):
    """Python package installed for the user with pip, detected by import."""

    def __init__(self, name: str, package: str, module: str) -> None:
        super().__init__(name)
        self.package = package
        self.module = module

    def is_present(self, ctx: Context) -> bool:
        return ctx.run(["python3", "-c", f"import {self.module}"], check=False).ok

    def install(self, ctx: Context) -> None:
        ctx.run(["pip3", "install", "--user", self.package, "--break-system-packages"])

    def version(self, ctx: Context) -> str:
        cp = ctx.run(["pip3", "show", self.package], check=False)
        for line in cp.stdout.splitlines():
            if line.startswith("Version:"):
                return line.split(":", 1)[1].strip()
        return ""


def pynvim() -> PipUserPackageStep:
    return PipUserPackageStep("pynvim", "pynvim", "pynvim")


def mysql_connector() -> PipUserPackageStep:
    return PipUserPackageStep("mysql-connector-python", "mysql-connector-python", "mysql.connector")
