"""ShowSync exception hierarchy."""

from __future__ import annotations


class ShowSyncError(Exception):
    """Base exception for all ShowSync errors."""

    code = "INTERNAL_ERROR"


class ValidationError(ShowSyncError):
    """Malformed or logically inconsistent input. Nothing was written."""

    code = "VALIDATION_ERROR"


class InvalidStageError(ValidationError):
    """Stage name is not one of the fixed pipeline stages."""

    def __init__(self, stage: str) -> None:
        self.stage = stage
        super().__init__(f"Invalid stage name: {stage!r}")


class ForbiddenError(ShowSyncError):
    """Permission or lock-state violation. Nothing was written."""

    code = "FORBIDDEN"


class NotFoundError(ShowSyncError):
    """ShowSet or a referenced entity does not exist."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: str = "") -> None:
        self.resource = resource
        self.identifier = identifier
        suffix = f" {identifier!r}" if identifier else ""
        super().__init__(f"{resource}{suffix} not found")


class ConflictError(ShowSyncError):
    """Concurrent modification detected by a conditional write. Re-read and retry."""

    code = "CONFLICT"

    def __init__(self, show_set_id: str, expected_revision: int | None = None) -> None:
        self.show_set_id = show_set_id
        self.expected_revision = expected_revision
        super().__init__(
            f"ShowSet {show_set_id!r} was modified concurrently"
            + (f" (expected revision {expected_revision})" if expected_revision is not None else "")
        )


class StoreError(ShowSyncError):
    """Unexpected failure talking to the ShowSet store."""


class CacheError(ShowSyncError):
    """Redis cache operation failed."""
