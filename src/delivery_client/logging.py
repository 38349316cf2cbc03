"""Logging setup for processes that embed the delivery client."""

from __future__ import annotations

import logging

from shared.infrastructure.logging import configure_console_logging


def configure_logging(level: int = logging.INFO) -> None:
    """JSON logs through the same structlog chain the backend uses."""
    configure_console_logging(level)
