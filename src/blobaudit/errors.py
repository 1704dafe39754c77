# src/blobaudit/errors.py
"""Exception taxonomy for blobaudit.

Failure kinds:
- ConfigurationError: raised before any blob is touched. Fatal for the run.
- BlobRequestError: a single storage request failed. The auditor records it
  against the blob and moves on.
- ScanAbortedError: listing failed mid-scan; carries the partial counters.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from azure.core.exceptions import AzureError

    from blobaudit.engine.auditor import AuditSummary


class BlobAuditError(Exception):
    """Base class for all blobaudit errors."""


class ConfigurationError(BlobAuditError):
    """Invalid or incomplete run configuration."""


class InvalidAuthModeError(ConfigurationError):
    """Auth mode is not one of the supported credential modes."""

    def __init__(self, mode: object) -> None:
        self.mode = mode
        super().__init__(f"Invalid auth mode {mode!r}. Use --mi or --cs")


class BlobRequestError(BlobAuditError):
    """A storage request failed.

    Carries whatever the service supplied: HTTP status, storage error code
    and message. Either of the first two may be None for transport-level
    failures (DNS, connection reset) where no response was received.

    Attributes:
        operation: Which call failed (list_blobs, get_properties, set_tier).
        blob_name: Blob the call targeted, None for container-level calls.
        status_code: HTTP status from the service, if any.
        error_code: Storage error code (e.g. BlobNotFound), if any.
        message: Human-readable failure description.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        blob_name: str | None = None,
        status_code: int | None = None,
        error_code: str | None = None,
    ) -> None:
        self.operation = operation
        self.blob_name = blob_name
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        super().__init__(f"{operation} failed: {status_code} {error_code} | {message}")

    @classmethod
    def from_azure(cls, operation: str, exc: AzureError, *, blob_name: str | None = None) -> BlobRequestError:
        """Build from an Azure SDK exception.

        HttpResponseError (and subclasses such as ResourceNotFoundError) carry
        status_code and error_code; ServiceRequestError and friends do not.
        """
        status_code = getattr(exc, "status_code", None)
        error_code = getattr(exc, "error_code", None)
        return cls(
            operation,
            exc.message,
            blob_name=blob_name,
            status_code=status_code,
            error_code=str(error_code) if error_code is not None else None,
        )


class ScanAbortedError(BlobAuditError):
    """Listing failed partway through a scan.

    Blobs listed before the failure were already processed (and possibly
    re-tiered), so the counters reached so far travel with the error.

    Attributes:
        cause: The listing failure.
        summary: Counters for the blobs processed before it.
    """

    def __init__(self, cause: BlobRequestError, summary: AuditSummary) -> None:
        self.cause = cause
        self.summary = summary
        super().__init__(f"Scan aborted after {summary.scanned} blobs: {cause}")
