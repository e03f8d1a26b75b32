"""Error taxonomy shared by the service layer and the HTTP adapter.

Services raise these exceptions; the API layer translates them into
responses using ``status_code``. Best-effort side effects never raise them
to callers.
"""

from __future__ import annotations


class ReelStageError(RuntimeError):
    """Base class for all domain errors."""

    status_code: int = 500
    default_detail: str = "Internal error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFound(ReelStageError):
    """Referenced entity is absent."""

    status_code = 404
    default_detail = "Not found"


class Forbidden(ReelStageError):
    """Actor lacks ownership or the required role."""

    status_code = 403
    default_detail = "Forbidden"


class Conflict(ReelStageError):
    """Uniqueness violation that is not absorbed into idempotent success."""

    status_code = 409
    default_detail = "Conflict"


class AssetMissing(ReelStageError):
    """Acknowledge was called before every asset part was uploaded."""

    status_code = 409
    default_detail = "Uploaded asset not found"


class InvalidArgument(ReelStageError):
    """Malformed payload."""

    status_code = 422
    default_detail = "Invalid argument"


class Unavailable(ReelStageError):
    """An external dependency (object storage, search index) did not respond."""

    status_code = 503
    default_detail = "Dependency unavailable"


class Internal(ReelStageError):
    """Storage transaction failure; the transaction has been rolled back."""

    status_code = 500
    default_detail = "Internal error"


class NotInitialized(ReelStageError):
    """The aggregate counter row has never been reconciled."""

    status_code = 404
    default_detail = "Counters not initialized; run a resync first"


class DeadlineExceeded(ReelStageError):
    """The caller's deadline expired or the operation was cancelled."""

    status_code = 504
    default_detail = "Operation cancelled or timed out"


__all__ = [
    "AssetMissing",
    "Conflict",
    "DeadlineExceeded",
    "Forbidden",
    "Internal",
    "InvalidArgument",
    "NotFound",
    "NotInitialized",
    "ReelStageError",
    "Unavailable",
]
