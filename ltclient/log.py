from __future__ import annotations

import logging

from ltclient.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def setup_logging(settings: Settings) -> logging.Handler:
    """Install the log sink on the `ltclient` logger.

    The log file is truncated on every start. With logging disabled a
    NullHandler is installed so nothing reaches the root logger.
    """
    logger = logging.getLogger("ltclient")
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    handler: logging.Handler
    if settings.log_enabled:
        handler = logging.FileHandler(settings.log_file, mode="w", encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.setLevel(settings.log_level)
    else:
        handler = logging.NullHandler()
    logger.addHandler(handler)
    logger.propagate = False
    return handler
