"""
Logging for blindbid.

Everything logs under the ``blindbid`` logger, one child per subsystem
(``blindbid.bid``, ``blindbid.backend``, ...). Console output goes to stderr
so that command output on stdout stays machine-readable. The level and an
optional log file come from ``setup_logging`` arguments, falling back to the
``BLINDBID_LOG_LEVEL`` and ``BLINDBID_LOG_FILE`` environment variables.

Secret material (bid values, blinders, secret_k, shared secrets) must never
be passed to these loggers.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

import colorlog

ROOT_LOGGER = "blindbid"

LEVEL_ENV = "BLINDBID_LOG_LEVEL"
FILE_ENV = "BLINDBID_LOG_FILE"

CONSOLE_FORMAT = "%(log_color)s%(levelname)-8s%(reset)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


def resolve_level(level: Union[int, str, None]) -> int:
    """
    Numeric level from an int, a level name, or the environment.

    Raises:
        ValueError: On an unknown level name
    """
    if level is None:
        level = os.environ.get(LEVEL_ENV, "INFO")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logging(
    level: Union[int, str, None] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    (Re)configure the blindbid logger tree.

    Args:
        level: Level for every handler; BLINDBID_LOG_LEVEL or INFO if None
        log_file: Extra plain-text log file; BLINDBID_LOG_FILE if None

    Returns:
        The ``blindbid`` root logger
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(resolve_level(level))

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = colorlog.StreamHandler(sys.stderr)
    console.setFormatter(colorlog.ColoredFormatter(CONSOLE_FORMAT, log_colors=LEVEL_COLORS))
    root.addHandler(console)

    log_file = log_file or os.environ.get(FILE_ENV)
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(file_handler)

    return root


def get_logger(name: str) -> logging.Logger:
    """Logger for one subsystem, configuring defaults on first use."""
    if not logging.getLogger(ROOT_LOGGER).handlers:
        setup_logging()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
