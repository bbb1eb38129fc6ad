"""
Logging configuration using structlog for structured, JSON-based logging.

Logs are written to stderr so command output on stdout stays machine-readable.
Secret values are never passed to the logger; keys, paths, services and
environments are.
"""

import sys

import structlog


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structured logging with JSON output.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level.upper()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
