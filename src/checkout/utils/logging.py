"""Logging for the checkout domain.

Log lines are structlog key-value events passed to the standard library root
logger on stdout. A request binds its checkout id (and cart id or payment
method) once, and every line logged while the step runs carries them.

Card numbers and security codes must never reach a log line, whichever
module logs them, so a processor masks those keys before rendering.
"""

import logging
import os
import sys
from typing import Any

import structlog

_JSON_ENVIRONMENTS = {"production", "staging"}
_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}
CARD_FIELDS = frozenset({"card_number", "ccno", "cvv", "mycvv", "card_fields"})


def _environment() -> str:
    return os.getenv("PROTEAN_ENV", "development").lower()


def redact_card_fields(logger, method_name: str, event_dict: dict) -> dict:
    for key in CARD_FIELDS.intersection(event_dict):
        event_dict[key] = "[redacted]"
    return event_dict


def configure_logging() -> None:
    env = _environment()
    logging.basicConfig(
        stream=sys.stdout,
        level=os.getenv("LOG_LEVEL", _LEVELS.get(env, "INFO")),
        format="%(message)s",
        force=True,
    )

    # Suppress noisy library loggers
    logging.getLogger("protean").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    if env in _JSON_ENVIRONMENTS:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            redact_card_fields,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_checkout_context(**kwargs: Any) -> None:
    """Attach checkout identifiers to every subsequent log line in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_checkout_context() -> None:
    structlog.contextvars.clear_contextvars()
