"""Logging configuration.

Level comes from the LOG_LEVEL environment variable (default INFO) unless
given explicitly. Records go to stderr through rich so they don't mix with
command output on stdout.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

from .config import get_settings

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_log_level() -> int:
    """Logging level from settings, falling back to INFO for unknown names."""
    return LOG_LEVEL_MAP.get(get_settings().log_level, logging.INFO)


def setup_logging(level: int | None = None) -> None:
    """Configure the root logger with a single rich handler."""
    log_level = level if level is not None else get_log_level()

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        log_time_format="[%Y-%m-%d %H:%M:%S]",
    )
    handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
