"""
Structured JSON logging for lifecycle operations.

Provides single-line JSON logs with a trace ID and operation name so the
rounds of a long purge or retention run can be correlated, plus a context
manager that times an operation end to end.
"""

import json
import logging
import sys
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime

# Context variables for trace correlation
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)
operation_var: ContextVar[str | None] = ContextVar("operation", default=None)

# Extra record attributes copied into the JSON payload
_EXTRA_FIELDS = (
    "event",
    "duration_ms",
    "entity",
    "row_id",
    "error",
    "attempted",
    "deleted",
    "failed",
    "rounds",
    "archived_count",
    "deleted_count",
    "audit_deleted",
    "backup_schedule",
    "actor",
    "category",
)


# -----------------------------------------------------------------------------
# JSON Formatter
# -----------------------------------------------------------------------------


class JSONFormatter(logging.Formatter):
    """
    Format log records as single-line JSON.

    Output format:
    {"timestamp": "...", "level": "INFO", "message": "...", "trace_id": "...", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        trace_id = trace_id_var.get()
        if trace_id:
            log_data["trace_id"] = trace_id

        operation = operation_var.get()
        if operation:
            log_data["operation"] = operation

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in _EXTRA_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json.dumps(log_data, default=str)


def configure_logging(json_format: bool = True, level: str = "INFO") -> None:
    """
    Configure root logging.

    Args:
        json_format: If True, use JSON format. If False, use human-readable format.
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


# -----------------------------------------------------------------------------
# Context Managers
# -----------------------------------------------------------------------------


@contextmanager
def log_operation(operation: str, trace_id: str | None = None):
    """
    Context manager for operation-level logging.

    Logs start and end with duration and binds the operation name and a
    trace ID for every record emitted inside the block.

    Usage:
        with log_operation("hard_reset_support_data"):
            # ... purge logic ...
    """
    trace_token = trace_id_var.set(trace_id or trace_id_var.get() or str(uuid.uuid4()))
    operation_token = operation_var.set(operation)

    start_time = time.time()
    logger = logging.getLogger("support_lifecycle.operations")

    logger.info(f"Operation {operation} started", extra={"event": "operation_start"})

    try:
        yield
        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Operation {operation} completed",
            extra={"event": "operation_complete", "duration_ms": duration_ms},
        )
    except Exception as e:
        duration_ms = int((time.time() - start_time) * 1000)
        logger.error(
            f"Operation {operation} failed: {e}",
            extra={"event": "operation_failed", "duration_ms": duration_ms},
            exc_info=True,
        )
        raise
    finally:
        operation_var.reset(operation_token)
        trace_id_var.reset(trace_token)
