"""Structured logging module."""

from .config import (
    bind_context,
    configure_logging,
    get_logger,
    log_context,
    redact_secrets,
)

__all__ = [
    "bind_context",
    "configure_logging",
    "get_logger",
    "log_context",
    "redact_secrets",
]
