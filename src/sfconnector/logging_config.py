from __future__ import annotations

import logging
from typing import Optional

PACKAGE_LOGGER = "sfconnector"

_LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_LOG_DATEFMT = "%H:%M:%S"

# requests pulls these in; their connection chatter drowns out session logs at DEBUG
_NOISY_LOGGERS = ("urllib3.connection", "urllib3.connectionpool")


def _quiet(name: str, floor: int) -> None:
    logger = logging.getLogger(name)
    if logger.level < floor:
        logger.setLevel(floor)


def configure_logging(level: Optional[int], *, fmt: Optional[str] = None) -> logging.Logger:
    """Set up console logging for the sfconnector package and return its logger.

    A root handler is installed only if none exists yet, so an application
    that configured logging first keeps its handlers. Repeated calls just move
    the thresholds.
    """
    lvl = logging.WARNING if level is None else level

    root = logging.getLogger()
    if not root.hasHandlers():
        logging.basicConfig(format=fmt or _LOG_FORMAT, datefmt=_LOG_DATEFMT)
    root.setLevel(lvl)

    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    pkg_logger.setLevel(lvl)

    for name in _NOISY_LOGGERS:
        _quiet(name, logging.ERROR if lvl <= logging.DEBUG else logging.WARNING)
    return pkg_logger
