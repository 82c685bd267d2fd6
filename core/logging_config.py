"""Structured logging configuration for the PDF chat service."""

import logging
from typing import Any, Dict, List, Optional

import structlog
from structlog.stdlib import LoggerFactory


def configure_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structlog once for the whole process."""

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> structlog.BoundLogger:
    """Get a logger bound to a component name."""
    return structlog.get_logger(component, component=component)


def log_query_execution(
    logger: structlog.BoundLogger,
    query: str,
    response: str,
    metadata: Optional[List[Dict[str, Any]]] = None,
) -> None:
    logger.info(
        "chat_query_executed",
        query=query,
        response=response,
        metadata=metadata or [],
    )


def log_error(logger: structlog.BoundLogger, error: BaseException, context: str) -> None:
    logger.error(
        "error_occurred",
        error=str(error),
        error_type=type(error).__name__,
        context=context,
    )
