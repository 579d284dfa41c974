"""Logging setup shared by the data-access layer.

Every executed statement runs under a correlation id kept in a context
variable, so the debug line with the statement text, the failure line and the
timing line of one round trip can be tied together.
"""

from __future__ import annotations

import contextvars
import logging
import sys
import uuid
from typing import Any, Dict, Optional

correlation_id_ctx: contextvars.ContextVar[str] = contextvars.ContextVar("correlation_id", default="-")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"


class CorrelationIdFilter(logging.Filter):
    """
    Logging filter to inject the correlation_id into log records.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_ctx.get()
        return True


def new_correlation_id() -> str:
    """Start a new correlation scope and return its id."""
    cid = uuid.uuid4().hex[:12]
    correlation_id_ctx.set(cid)
    return cid


def fmt_ctx(ctx: Dict[str, Any]) -> str:
    """Return a deterministic key=value string used in log messages."""
    return " ".join(f"{k}={v!r}" if isinstance(v, str) else f"{k}={v}" for k, v in ctx.items() if v is not None)


def configure_logging(level: int = logging.INFO, stream: Optional[Any] = None) -> None:
    """Configure the root logger and attach the correlation id filter to its handlers."""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        stream=stream or sys.stdout,
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            handler.addFilter(CorrelationIdFilter())
