"""Public observability primitives: structured logging and correlation fields."""

from archconform.observability.logging import (
    correlation_scope,
    get_correlation_context,
    reset_correlation_fields,
    set_correlation_fields,
    setup_logging,
    setup_logging_from_config,
)

__all__ = [
    "correlation_scope",
    "get_correlation_context",
    "reset_correlation_fields",
    "set_correlation_fields",
    "setup_logging",
    "setup_logging_from_config",
]
