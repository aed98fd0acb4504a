import logging
import os
import sys
from typing import Optional

logger = logging.getLogger("snap-reindexer")

LOG_FORMAT = "%(asctime)s - [%(name)s] - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """Attach app-managed handlers to the package logger.

    Worker processes run outside any server that would configure logging for
    them, so the package logger gets its own stdout handler and stops
    propagating. Set DISABLE_APP_LOGGING=true to fall back to the root config.
    """
    logger.setLevel(level.upper())
    logger.handlers.clear()

    if os.getenv("DISABLE_APP_LOGGING", "false").lower() == "true":
        logger.propagate = True
        return logger

    logger.propagate = False
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
