"""
Error hierarchy for the curation reconciler.

Taxonomy (store outcomes):
  - AlreadyExistsError: benign during creation, resource already converged
  - NotFoundError:      benign during fetch-before-patch and deletion
  - ConflictError:      transient, retried by retry_on_conflict
  - StoreError:         anything else, fatal for the reconciliation pass

ReconcileError wraps a fatal error with the operation and resource identity
so the operator boundary can log something actionable.
"""
from typing import Optional


class CurationError(Exception):
    """Base exception for all curation operator failures."""


class StoreError(CurationError):
    """Unclassified failure talking to the resource store."""

    def __init__(self, message: str, kind: str = "", name: str = "", status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.name = name
        self.status = status


class AlreadyExistsError(StoreError):
    pass


class NotFoundError(StoreError):
    pass


class ConflictError(StoreError):
    """The submitted version token is stale."""


class ReconcileError(CurationError):
    """Fatal error for one reconciliation pass."""

    def __init__(self, operation: str, kind: str, name: str, cause: Exception):
        super().__init__(f"Failure {operation} {kind} {name!r}: {cause}")
        self.operation = operation
        self.kind = kind
        self.name = name
        self.cause = cause
