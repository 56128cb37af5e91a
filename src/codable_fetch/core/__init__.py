"""
Infrastructure shared across the fetch layer, services and CLI.

Currently this is the structured logging setup; modules obtain loggers through
:func:`get_logger` rather than configuring handlers themselves.
"""

from .logging import StructuredLogFormatter, StructuredLoggerAdapter, configure_logging, get_logger, log_progress

__all__ = [
    "StructuredLogFormatter",
    "StructuredLoggerAdapter",
    "configure_logging",
    "get_logger",
    "log_progress",
]
