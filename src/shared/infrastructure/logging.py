"""structlog processor chain shared by the Django backend and the delivery client."""

from __future__ import annotations

import logging
import re

import structlog

SENSITIVE_PATTERN = re.compile(
    r"(?P<bearer>bearer\s+)[A-Za-z0-9\-_.=]+"
    r"|(?P<key>password|passwd|secret|token|authorization|refresh|access)"
    r"""(?P<sep>[=:]\s*["']?)(?:bearer\s+)?[^\s,}"']+""",
    re.IGNORECASE,
)

SENSITIVE_KEYS = {"password", "token", "access", "refresh", "authorization"}


def _mask(match: re.Match) -> str:
    if match.group("bearer"):
        return f"{match.group('bearer')}***MASKED***"
    return f"{match.group('key')}{match.group('sep')}***MASKED***"


def mask_sensitive_data(_, __, event_dict):
    """Processor that masks bearer tokens, passwords and secrets in log values."""
    for key, value in list(event_dict.items()):
        if key.lower() in SENSITIVE_KEYS and value:
            event_dict[key] = "***MASKED***"
        elif isinstance(value, str):
            event_dict[key] = SENSITIVE_PATTERN.sub(_mask, value)
    return event_dict


# Shared processors used by both structlog and stdlib logging
shared_processors = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    mask_sensitive_data,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def configure_structlog() -> None:
    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def json_formatter() -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ],
        foreign_pre_chain=shared_processors,
    )


def configure_console_logging(level: int = logging.INFO) -> None:
    """Wire structlog and the root logger to a JSON console handler.

    Used by processes that do not go through Django's ``LOGGING`` dict.
    """
    configure_structlog()
    handler = logging.StreamHandler()
    handler.setFormatter(json_formatter())
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
