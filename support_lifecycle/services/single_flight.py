# support_lifecycle/services/single_flight.py
"""
Single-flight guard for destructive operations.

Keyed by operation name and process-local: it keeps two requests served by
the same worker from running the same purge concurrently. Multi-instance
deployments still need an external lock.
"""

import logging
import threading
from contextlib import contextmanager

from support_lifecycle.errors import OperationInProgress

logger = logging.getLogger(__name__)

_registry_lock = threading.Lock()
_running: set[str] = set()


@contextmanager
def single_flight(operation: str):
    """Run the block only if no other holder of operation is active."""
    with _registry_lock:
        if operation in _running:
            logger.warning(f"Rejected concurrent {operation}")
            raise OperationInProgress(operation)
        _running.add(operation)

    try:
        yield
    finally:
        with _registry_lock:
            _running.discard(operation)


def is_running(operation: str) -> bool:
    with _registry_lock:
        return operation in _running
