"""Structured logging configuration with structlog.

Request and job context (correlation ID, user, source, video) lives in
structlog's context variables and is merged into every event, so concurrent
requests and transcript jobs never see each other's values.
"""

import logging
import re
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# These log full request URLs at INFO, and YouTube URLs carry the API key
NOISY_LOGGERS = ("httpx", "httpcore", "openai")

_SECRET_PARAM_RE = re.compile(r"([?&](?:key|token|api_key)=)[^&\s\"']+", re.IGNORECASE)


def redact_secrets(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Mask API keys and tokens in any URL-like string value."""
    for name, value in event_dict.items():
        if isinstance(value, str) and "=" in value:
            event_dict[name] = _SECRET_PARAM_RE.sub(r"\1***", value)
    return event_dict


def service_info(service_name: str, service_version: str) -> Processor:
    """Build a processor stamping events with the service name and version."""

    def add_service_info(
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict.setdefault("service", service_name)
        event_dict.setdefault("version", service_version)
        return event_dict

    return add_service_info


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    service_name: str = "content-repurposer",
    service_version: str = "0.1.0",
) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: JSON lines when True, coloured console output otherwise.
        service_name: Stamped on every event as ``service``.
        service_version: Stamped on every event as ``version``.
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        service_info(service_name, service_version),
        redact_secrets,
    ]
    if json_format:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level.upper(),
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, usually with ``__name__``."""
    return structlog.get_logger(name)


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """Bind values for the duration of a block.

    Values that were already bound, for example an outer ``source_id``, are
    restored on exit rather than dropped.
    """
    with structlog.contextvars.bound_contextvars(**values):
        yield


def bind_context(**values: Any) -> None:
    """Bind values for the rest of the current request or task."""
    structlog.contextvars.bind_contextvars(**values)
