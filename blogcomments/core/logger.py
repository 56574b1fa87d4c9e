"""
Logger setup.

Every module obtains its logger through setup_logger(__name__).
"""

import logging

from blogcomments.core.config import get_settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _resolve_level() -> int:
    settings = get_settings()
    level_name = settings.LOG_LEVEL.upper()
    if settings.DEBUG and level_name == "INFO":
        return logging.DEBUG
    level = logging.getLevelName(level_name)
    return level if isinstance(level, int) else logging.INFO


def setup_logger(name: str) -> logging.Logger:
    """
    Get a configured logger.

    Args:
        name: Logger name, usually the module's __name__

    Returns:
        logging.Logger: Logger with a single stream handler attached
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(_resolve_level())
    return logger
