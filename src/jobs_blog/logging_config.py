# -*- coding: utf-8 -*-
"""
Structured JSON logging configuration.

Every record is one JSON object on stdout carrying ``@timestamp``, ``level``,
``logger``, ``service`` and the ``request_id`` of the HTTP request that
produced it ("-" outside requests). Values passed through ``extra=`` become
top-level keys.
"""
import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from .config import settings
from .middleware import get_request_id

SERVICE_NAME = "jobs_blog"

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite", "MARKDOWN", "passlib")


class RequestIDFilter(logging.Filter):
    """Add request_id to log records."""

    def filter(self, record):
        record.request_id = get_request_id() or "-"
        return True


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter with level, logger and request_id fields."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["request_id"] = getattr(record, "request_id", "-")


def setup_logging(level: str | None = None) -> logging.Logger:
    """
    Configure JSON logging on the root logger.

    Args:
        level: Log level name. Defaults to settings.LOG_LEVEL.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        CustomJsonFormatter(
            fmt="%(level)s %(name)s %(request_id)s %(message)s",
            rename_fields={"levelname": "level"},
            static_fields={"service": SERVICE_NAME},
            timestamp="@timestamp",
        )
    )
    handler.addFilter(RequestIDFilter())
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
