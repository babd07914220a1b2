"""
Application logging configuration.

Everything in the file sharing service logs through one ``fileshare``
logger. Storage backends report the failures they absorb (empty listings,
failed deletes, unreadable objects) here instead of to the client, so the
server log is where those show up.
"""
import logging
import sys

from fileshare.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging() -> logging.Logger:
    """
    Return the ``fileshare`` logger, attaching a stdout handler on first call.

    The level comes from ``LOG_LEVEL``; unknown level names fall back to INFO.

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger("fileshare")
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    logger.setLevel(level if isinstance(level, int) else logging.INFO)

    # Modules call this at import time; attach the handler once
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
