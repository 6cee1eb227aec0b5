"""Logging configuration for semlink.

Modules log through the standard library:
    import logging
    log = logging.getLogger(__name__)

The level is read from the SEMLINK_LOG_LEVEL environment variable
(DEBUG, INFO, WARNING, ERROR; default INFO).
"""

from __future__ import annotations

import logging
import os
import sys

_PACKAGE_LOGGER = "semlink"


def configure_logging() -> None:
    """Attach a stderr handler to the semlink package logger.

    Call once at application startup (the CLI does). Subsequent calls are no-ops.
    """
    root_logger = logging.getLogger(_PACKAGE_LOGGER)
    if root_logger.handlers:
        return

    level_name = os.environ.get("SEMLINK_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt="[%(levelname)s] %(name)s: %(message)s"))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)
    # Avoid duplicate lines when the host application configures the root logger.
    root_logger.propagate = False
