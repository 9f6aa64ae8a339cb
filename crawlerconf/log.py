"""Structured logging setup."""
import logging
import sys

import structlog

from .models import REDACTED

SENSITIVE_KEYS = frozenset({"password", "PASSWORD", "secret_string", "SecretString", "configuration", "Configuration"})


def redact_sensitive(logger, method_name, event_dict):
    """structlog processor: mask values under keys that may carry credentials."""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog to emit one JSON object per line through stdlib logging."""
    root = logging.getLogger()
    if not root.handlers:
        # Lambda installs its own handler; plain processes get one on stdout.
        logging.basicConfig(stream=sys.stdout, format="%(message)s")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )
