from __future__ import annotations

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


LOG_LEVEL_ENV = "DEVSETUP_LOG_LEVEL"


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Configure the devsetup loggers once.

    Level comes from --verbose, else DEVSETUP_LOG_LEVEL, else INFO.
    """
    level_name = "DEBUG" if verbose else os.getenv(LOG_LEVEL_ENV, "INFO")
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.INFO),
        format="%(message)s",
        handlers=[handler],
        force=True,
    )
