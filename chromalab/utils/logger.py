"""
Structured logging configuration using structlog.

Provides:
- Structured logging with JSON output (production) or console (development)
- Correlation ID context variables for automatic propagation across logs
- Utilities for setting/clearing correlation context
"""
import logging
import sys
from contextvars import ContextVar
from typing import Any, Optional

import structlog
from chromalab.core.settings import settings


# =============================================================================
# CORRELATION ID CONTEXT VARIABLES
# =============================================================================
# Context variables propagate across awaits and tasks, so every log line
# emitted while a pipeline run is active carries its ids.

session_id_var: ContextVar[Optional[str]] = ContextVar("session_id", default=None)
run_id_var: ContextVar[Optional[int]] = ContextVar("run_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)


def set_correlation_context(
    session_id: Optional[str] = None,
    run_id: Optional[int] = None,
    user_id: Optional[str] = None,
) -> None:
    """
    Set correlation IDs in context for automatic log propagation.

    Args:
        session_id: Stylist session identifier
        run_id: Auto-plan run identifier
        user_id: Stylist uid
    """
    if session_id is not None:
        session_id_var.set(session_id)
    if run_id is not None:
        run_id_var.set(run_id)
    if user_id is not None:
        user_id_var.set(user_id)


def clear_correlation_context() -> None:
    """Clear all correlation context variables."""
    session_id_var.set(None)
    run_id_var.set(None)
    user_id_var.set(None)


def add_correlation_ids(
    logger: Any,
    method_name: str,
    event_dict: dict,
) -> dict:
    """Structlog processor that adds correlation IDs to all log entries."""
    if session_id_var.get():
        event_dict["session_id"] = session_id_var.get()
    if run_id_var.get() is not None:
        event_dict["run_id"] = run_id_var.get()
    if user_id_var.get():
        event_dict["user_id"] = user_id_var.get()
    return event_dict


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


def configure_logging() -> None:
    """Configure structured logging."""

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        add_correlation_ids,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.enable_structured_logging:
        # JSON output for production
        processors.append(structlog.processors.JSONRenderer())
    else:
        # Human-readable output for development
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)
    """
    return structlog.get_logger(name)


# Initialize logging on import
configure_logging()
