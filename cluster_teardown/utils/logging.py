"""Logging configuration."""

from __future__ import annotations

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
VERBOSE_FORMAT = "%(asctime)s - %(levelname)s - [%(module)s.%(funcName)s:%(lineno)d] - %(message)s"

# Third-party loggers that flood the output below WARNING
NOISY_LOGGERS = ("openstack", "keystoneauth", "urllib3", "stevedore")


def setup_logging(level: str = "WARNING", verbose: bool = False, log_file: Optional[str] = None) -> None:
    """Configure root logging for the CLI.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        verbose: Force DEBUG with source locations, including SDK request logs
        log_file: Also write DEBUG-level logs to this file (optional)

    Raises:
        ValueError: If level is not a valid log level name
    """
    numeric_level = logging.DEBUG if verbose else getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter(VERBOSE_FORMAT if verbose else LOG_FORMAT))
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(VERBOSE_FORMAT))
        root.addHandler(file_handler)

    root.setLevel(logging.DEBUG if log_file else numeric_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)
