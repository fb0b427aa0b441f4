"""Sync error taxonomy.

Request-level failures carry a stable ``code`` that the error handlers put
into the response envelope. ``EntityProcessingError`` never reaches HTTP:
the push processor turns it into a conflict-shaped entry.
"""


class SyncError(Exception):
    """Base exception for sync errors."""

    code = "SYNC_FAILED"
    status_code = 400

    def __init__(self, message: str, *, details: list | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class SyncValidationError(SyncError):
    """Malformed request rejected before any processing."""

    code = "VALIDATION_ERROR"


class UnknownResolutionError(SyncValidationError):
    """Resolution strategy is not one of the three supported values."""

    code = "INVALID_RESOLUTION"


class EntityNotFoundError(SyncError):
    """Entity does not exist or is outside the caller's projects."""

    code = "ENTITY_NOT_FOUND"
    status_code = 404


class EntityProcessingError(SyncError):
    """A single pushed mutation could not be applied."""

    code = "PROCESSING_ERROR"
