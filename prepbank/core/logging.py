"""Structured JSON logging.

Every record carries the request id of the HTTP request that produced it (or
``None`` outside a request), so import events can be joined to access logs.
"""

import logging
import sys
from contextvars import ContextVar
from typing import Any

from pythonjsonlogger import jsonlogger

from prepbank.core.config import settings

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


class RequestContextFilter(logging.Filter):
    """Stamp the current request id onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        return True


class PrepBankJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(
        self, log_record: dict[str, Any], record: logging.LogRecord, message_dict: dict
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["env"] = settings.ENV
        log_record.setdefault("event", record.getMessage())


def setup_logging(level: str | None = None) -> None:
    """Route the root logger to stdout as JSON. Safe to call more than once."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        PrepBankJsonFormatter("%(message)s %(request_id)s", datefmt="%Y-%m-%dT%H:%M:%S")
    )
    handler.addFilter(RequestContextFilter())
    root.handlers = [handler]

    for noisy, noisy_level in (
        ("uvicorn.access", logging.WARNING),
        ("sqlalchemy.engine", logging.WARNING),
        ("multipart", logging.INFO),
    ):
        logging.getLogger(noisy).setLevel(noisy_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
