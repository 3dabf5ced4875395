"""
Logging setup for processes that run the counter (the ingest worker).

Library modules only call logging.getLogger(__name__); handlers and
levels are installed once here by the entry point.
"""

import logging
import sys
from typing import Optional

from counter_app.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: Log level name; defaults to settings.log_level
    """
    level = level or settings.log_level

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level.upper())

    # Redis client is chatty at DEBUG
    logging.getLogger("redis").setLevel(logging.WARNING)
