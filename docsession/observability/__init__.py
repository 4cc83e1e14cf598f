"""
Observability Package

Structured JSON logging (structlog) with a per-request correlation id.
"""

from docsession.observability.logging import (
    configure_logging,
    correlation_id_context,
    get_correlation_id,
    get_logger,
    set_correlation_id,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "set_correlation_id",
    "get_correlation_id",
    "correlation_id_context",
]
