from __future__ import annotations

import logging
import sys
import time

_CONFIGURED = False

LOGGER_NAME = "amplint"


class TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        self.converter = time.gmtime


def level_for_verbosity(verbosity: int) -> int:
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(verbosity: int = 0) -> logging.Logger:
    """Install a single stderr handler on the package logger.

    Calling this more than once only adjusts the level.
    """
    global _CONFIGURED
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level_for_verbosity(verbosity))
    if _CONFIGURED:
        return logger
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(TextFormatter())
    logger.addHandler(handler)
    _CONFIGURED = True
    return logger
