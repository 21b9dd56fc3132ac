"""Colorful logging configuration using rich."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

console = Console()

_NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore", "openai")


def setup_logging(level: Optional[str] = None) -> None:
    """Configure rich logging for the whole process.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to the
               ``APP_LOG_LEVEL`` setting.
    """
    if level is None:
        from roomforge.settings import AppSettings

        level = AppSettings().log_level

    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                rich_tracebacks=True,
                tracebacks_show_locals=False,
                show_path=False,
                markup=False,
            )
        ],
        force=True,
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)
