"""knc.log — Logging configuration."""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a configured logger instance."""
    logger = logging.getLogger(name or "knc")

    # Only configure the package root once; children propagate to it
    root = logging.getLogger("knc")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.WARNING)

    return logger


def set_debug(enabled: bool) -> None:
    """Switch knc logging to DEBUG (or back to WARNING)."""
    get_logger().setLevel(logging.DEBUG if enabled else logging.WARNING)
