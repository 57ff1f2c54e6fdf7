"""Operation ids for log records emitted while a query or transaction runs."""

import contextvars
import logging
import uuid
from typing import Any, Dict

operation_id_ctx: contextvars.ContextVar[str] = contextvars.ContextVar("operation_id", default="")


class OperationIdFilter(logging.Filter):
    """
    Logging filter to inject the operation_id into log records.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.operation_id = operation_id_ctx.get()
        return True


def new_operation_id() -> str:
    """Start a new operation and return its id."""
    oid = uuid.uuid4().hex[:12]
    operation_id_ctx.set(oid)
    return oid


def fmt_ctx(ctx: Dict[str, Any]) -> str:
    """Return a deterministic key=value string used in log messages."""
    return " ".join(f"{k}={v}" for k, v in ctx.items() if v is not None)


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not any(isinstance(f, OperationIdFilter) for f in logger.filters):
        logger.addFilter(OperationIdFilter())
    return logger
