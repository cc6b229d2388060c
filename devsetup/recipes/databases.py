from __future__ import annotations

import re

from ..apt import AptPackagesStep, AptRepository
from ..context import Context


PSQL_MAJOR = re.compile(r"\(PostgreSQL\) (\d+)")


def mariadb() -> AptPackagesStep:
    return AptPackagesStep(
        "MariaDB",
        ["mariadb-server", "mariadb-client"],
        commands=["mariadb", "mysql"],
        services=["mariadb"],
        version_cmd=["mariadb", "--version"],
    )


class PostgresStep(AptPackagesStep):
    """PostgreSQL from the PGDG repository. Present only at the wanted major version."""

    def __init__(self, name: str = "PostgreSQL", major: int = 17) -> None:
        repo = AptRepository(
            name="pgdg",
            key_url="https://www.postgresql.org/media/keys/ACCC4CF8.asc",
            source=(
                "deb [signed-by=/etc/apt/keyrings/pgdg.gpg] "
                "http://apt.postgresql.org/pub/repos/apt $(lsb_release -cs)-pgdg main"
            ),
        )
        super().__init__(
            name,
            [f"postgresql-{major}"],
            repository=repo,
            services=["postgresql"],
            version_cmd=["psql", "--version"],
        )
        self.major = major

    def is_present(self, ctx: Context) -> bool:
        if not ctx.which("psql"):
            return False
        m = PSQL_MAJOR.search(ctx.run(["psql", "--version"], check=False).stdout)
        return bool(m) and int(m.group(1)) == self.major
