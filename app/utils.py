"""
Shared helpers.
"""
import logging

from app.core import config


LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

logging.basicConfig(level=config.LOG_LEVEL, format=LOG_FORMAT)


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger.

    Usage:
        log = get_logger(__name__)
        log.info("Rebuilding derived roles")
    """
    return logging.getLogger(name)
