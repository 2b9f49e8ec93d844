# support_lifecycle/routers/errors.py
"""Translation of engine errors into HTTP responses."""

from fastapi import HTTPException

from support_lifecycle.errors import (
    Forbidden,
    OperationInProgress,
    PolicyViolation,
    RunAbort,
    Unauthenticated,
)


def http_error(e: Exception) -> HTTPException:
    """Map an engine error to the matching HTTP status."""
    if isinstance(e, Unauthenticated):
        return HTTPException(status_code=401, detail=str(e))
    if isinstance(e, Forbidden):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, OperationInProgress):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, PolicyViolation):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, RunAbort):
        return HTTPException(status_code=500, detail={"error": str(e), "partial": e.partial})
    if isinstance(e, ValueError):
        return HTTPException(status_code=422, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))
