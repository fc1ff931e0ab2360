"""Observability helpers."""

from spectator.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_session_parse,
    record_parser_failure,
    record_backup_fetch,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_session_parse",
    "record_parser_failure",
    "record_backup_fetch",
]
