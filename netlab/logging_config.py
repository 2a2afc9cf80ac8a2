"""
Logging configuration for netlab.
"""

import logging
import os
from typing import Optional

from .config import LOG_DIR, LOG_LEVEL

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(name: str, log_file: Optional[str] = None) -> logging.Logger:
    """Return the logger for a component.

    When NETLAB_LOG_DIR is set, records are also written to
    ``<LOG_DIR>/<log_file or 'netlab'>.log``.
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, LOG_LEVEL, logging.WARNING))

    if LOG_DIR and not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        os.makedirs(LOG_DIR, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(LOG_DIR, f"{log_file or 'netlab'}.log"))
        file_handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(file_handler)

    return logger
