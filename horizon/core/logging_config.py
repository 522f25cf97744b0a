# horizon/core/logging_config.py
"""Logging setup for the horizon package."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "INFO", console: Optional[Console] = None) -> logging.Logger:
    """
    Route horizon.* loggers through a RichHandler.

    Calling it again replaces the handler instead of stacking another one.
    """
    logger = logging.getLogger("horizon")
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)

    return logger
