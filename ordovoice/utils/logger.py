"""
Logging setup for OrdoVoice
Every module logs through a child of the "ordovoice" logger, which owns the
only handler and the level read from ORDOVOICE_LOG_LEVEL.
"""

import logging
import sys
from typing import Optional

from ordovoice.utils import config

PACKAGE_LOGGER = "ordovoice"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str = PACKAGE_LOGGER, level: Optional[str] = None) -> logging.Logger:
    """
    Logger for a module of the package

    The package logger is configured on first use (stdout handler, level
    from configuration). An explicit level always overrides it.

    Args:
        name: Dotted logger name, usually __name__
        level: Level name such as "DEBUG" (default: ORDOVOICE_LOG_LEVEL)

    Returns:
        The named logger
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)

    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        package_logger.addHandler(handler)
        package_logger.propagate = False
        package_logger.setLevel(level or config.LOG_LEVEL)
    elif level:
        package_logger.setLevel(level)

    return logging.getLogger(name)
