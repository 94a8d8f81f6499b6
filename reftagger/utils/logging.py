"""
Structured logging setup shared by every module
"""
import logging
import sys

import structlog

from reftagger.config.settings import settings

_configured = False


def configure_logging(level: str = None, log_format: str = None):
    """Configure structlog on top of the stdlib logging root handler"""
    global _configured
    if _configured:
        return

    level = (level or settings.LOG_LEVEL).upper()
    log_format = log_format or settings.LOG_FORMAT

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level, logging.INFO),
    )

    renderer = (
        structlog.dev.ConsoleRenderer()
        if log_format == "console"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str = None):
    """Get a structlog logger bound to the module name"""
    return structlog.get_logger(name)
