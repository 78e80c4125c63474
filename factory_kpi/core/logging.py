from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Optional

# Request-scoped values picked up by every log line
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(correlation_id)s] [user:%(user_id)s] %(name)s: %(message)s"

# Chatty third-party loggers kept at WARNING unless the app runs at DEBUG
_NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "passlib")


class RequestContextFilter(logging.Filter):
    """Copy the correlation id and signed-in user id onto each record ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get() or "-"
        record.user_id = user_id_var.get() or "-"
        return True


# PUBLIC_INTERFACE
def configure_logging(level: int | str = logging.INFO) -> None:
    """
    Route all logging to stdout through a single handler carrying the request context.

    Safe to call more than once: the handler installed by a previous call is replaced,
    handlers added by anything else (basicConfig, uvicorn) are dropped from the root.
    """
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestContextFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    quiet = root.getEffectiveLevel() > logging.DEBUG
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING if quiet else logging.NOTSET)
