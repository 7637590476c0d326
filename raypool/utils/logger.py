# raypool/utils/logger.py

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    root = logging.getLogger("raypool")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Returns a logger under the 'raypool' hierarchy so a single handler
    serves every module.
    """
    _configure_root()
    if not name.startswith("raypool"):
        name = f"raypool.{name}"
    return logging.getLogger(name)
