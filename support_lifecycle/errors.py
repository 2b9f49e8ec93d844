# support_lifecycle/errors.py
"""
Error taxonomy for lifecycle and governance operations.

Guard errors (Unauthenticated, Forbidden) are raised before any mutation.
RowOperationFailure is built and logged inside best-effort purges and never
escapes them; RunAbort is raised when a fail-loud run stops part way.
"""


class SupportLifecycleError(Exception):
    """Base class for all engine errors."""


class Unauthenticated(SupportLifecycleError):
    """No identity could be resolved from the session."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class Forbidden(SupportLifecycleError):
    """Caller is authenticated but lacks an admin role."""

    def __init__(self, message: str = "Admin permissions required"):
        super().__init__(message)


class PolicyViolation(SupportLifecycleError):
    """Operation refused by a configured policy (disabled export, password rules)."""


class OperationInProgress(PolicyViolation):
    """Another invocation of the same destructive operation is running."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Operation '{operation}' is already running")


class RowOperationFailure(SupportLifecycleError):
    """A single row could not be mutated during a best-effort purge."""

    def __init__(self, entity: str, row_id: str, cause: BaseException):
        self.entity = entity
        self.row_id = row_id
        self.cause = cause
        super().__init__(f"Failed to delete {entity} {row_id}: {cause}")


class RunAbort(SupportLifecycleError):
    """A fail-loud run stopped mid-way; partial holds the counts reached so far."""

    def __init__(self, operation: str, cause: BaseException, partial: dict | None = None):
        self.operation = operation
        self.cause = cause
        self.partial = partial or {}
        super().__init__(f"{operation} aborted: {cause}")
