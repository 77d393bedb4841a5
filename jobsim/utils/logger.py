"""Logging setup shared by all simulator components."""

import logging
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%H:%M:%S"

_ROOT_NAME = "jobsim"


def setup_logger(
    name: str,
    level: Optional[Union[str, int]] = None,
    verbose: bool = False,
) -> logging.Logger:
    """Create (or fetch) a named logger under the ``jobsim`` hierarchy.

    A single stderr handler is attached to the package root logger the first
    time this is called. Passing ``level`` or ``verbose`` changes the level for
    every component; plain calls leave it untouched.

    Args:
        name: Logger name, usually the owning class name
        level: Level name ("DEBUG", "INFO", ...) or number
        verbose: Shortcut for DEBUG

    Returns:
        Configured logger
    """
    root = logging.getLogger(_ROOT_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
        root.propagate = False

    if verbose:
        root.setLevel(logging.DEBUG)
    elif level is not None:
        if isinstance(level, str):
            level = getattr(logging, level.upper(), logging.INFO)
        root.setLevel(level)

    if name == _ROOT_NAME:
        return root
    return logging.getLogger(f"{_ROOT_NAME}.{name}")
