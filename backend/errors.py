"""Error taxonomy for the storage / extraction / OCR pipeline."""
from __future__ import annotations


class DealOverviewError(Exception):
    """Base class for errors raised by the backend services."""


class ValidationError(DealOverviewError):
    """A required request field is missing or empty."""


class StorageError(DealOverviewError):
    """Object-store read/write/configuration fault."""


class NotFoundError(StorageError):
    """The requested object key does not exist in the bucket."""


class DocumentTooLargeError(StorageError):
    """The stored document exceeds the configured size cap."""

    def __init__(self, limit_bytes: int):
        super().__init__(f"Document exceeds {limit_bytes} bytes")
        self.limit_bytes = limit_bytes


class ExtractionError(DealOverviewError):
    """The call to the external extraction model failed."""


class ParseError(DealOverviewError):
    """The model output is not valid JSON. Message is safe to return to clients."""
