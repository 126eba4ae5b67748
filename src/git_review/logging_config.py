"""Logging setup for git-review."""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[Path] = None,
    max_file_size: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> logging.Logger:
    """Configure the package logger.

    Console records go to stderr through rich so they never mix with
    one-shot output on stdout. A rotating file handler is added when
    ``log_file`` is set; it always records DEBUG.
    """
    package_logger = logging.getLogger("git_review")
    package_logger.handlers.clear()
    package_logger.propagate = False

    console_level = getattr(logging, level.upper(), logging.WARNING)
    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
    )
    console_handler.setLevel(console_level)
    package_logger.addHandler(console_handler)
    package_logger.setLevel(console_level)

    if log_file:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(file_handler)
        package_logger.setLevel(logging.DEBUG)

    return package_logger
