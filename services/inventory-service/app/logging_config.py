"""Root logger configuration shared by the API process."""

from __future__ import annotations

import logging

AUDIT_LOGGER_NAME = "inventory.audit"


def setup_logging(level: str = "INFO") -> None:
    """Attach a console handler to the root logger unless one is already configured."""
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    )
    root.addHandler(handler)


def get_audit_logger() -> logging.Logger:
    """Return the logger that records admin mutations and proxied calls."""
    return logging.getLogger(AUDIT_LOGGER_NAME)
