"""Logging setup for the payroll run service."""
from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_HANDLER_NAME = "payroll_console"


def configure_logging(level: str = "INFO") -> None:
    """Attach a single stream handler to the ``payroll_console`` logger."""

    logger = logging.getLogger("payroll_console")
    logger.setLevel(level)
    if any(handler.get_name() == _HANDLER_NAME for handler in logger.handlers):
        return
    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
