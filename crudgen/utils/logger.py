"""
Project logging.
One stdout handler on the "crudgen" logger; modules log through child loggers
(`get_logger(__name__)`) that propagate to it. httpx request lines are only
shown at DEBUG so prompts and streamed chunks do not flood the output.
"""

import logging
import os
import sys

ROOT_LOGGER = "crudgen"
LOG_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s:%(funcName)s:%(lineno)d] %(message)s"


def _level() -> int:
    return getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)


def setup_logger() -> logging.Logger:
    logger = logging.getLogger(ROOT_LOGGER)
    level = _level()
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Child of the project logger; `name` is normally the caller's `__name__`."""
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


logger = setup_logger()
