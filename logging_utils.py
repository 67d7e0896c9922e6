"""Logging for the inkporter command line.

Library modules only create module loggers; the CLI calls
configure_logging() once. Records go to stderr so stdout carries nothing
but command output, such as the embed link printed after a save.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Iterable

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

LOG_LEVEL_CHOICES: Iterable[str] = tuple(LOG_LEVELS.keys())

# -qq, -q, default, -v
VERBOSITY_LADDER = (logging.ERROR, logging.WARNING, logging.INFO, logging.DEBUG)
DEFAULT_RUNG = 2

# Pillow logs every PNG chunk at DEBUG
NOISY_LOGGERS = ("PIL",)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def add_logging_args(parser) -> None:
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVEL_CHOICES,
        help="Explicit level; overrides -v/-q",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Show per-stage decode/pipeline detail",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="count",
        default=0,
        help="Only warnings (-q) or errors (-qq)",
    )


def resolve_log_level(
    log_level: str | None = None,
    verbose: int = 0,
    quiet: int = 0,
) -> int:
    if log_level:
        return LOG_LEVELS[log_level.lower()]
    rung = min(max(DEFAULT_RUNG + verbose - quiet, 0), len(VERBOSITY_LADDER) - 1)
    return VERBOSITY_LADDER[rung]


def configure_logging(
    log_level: str | None = None,
    verbose: int = 0,
    quiet: int = 0,
    stream: IO[str] | None = None,
) -> int:
    """Set the root level (adding a stderr handler if none exists).

    Returns:
        The numeric level now active.
    """
    level = resolve_log_level(log_level=log_level, verbose=verbose, quiet=quiet)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if not root_logger.handlers:
        handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
        root_logger.addHandler(handler)
    for handler in root_logger.handlers:
        handler.setLevel(level)
    return level
