"""Request-fatal ingestion errors.

Item-level problems (an invalid candidate, a failed write for one candidate)
are never raised past the per-item loop; they are collected as
``IngestionFailure`` records instead. Only the errors below abort a request.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .ingestor import IngestionFailure


class IngestionError(Exception):
    """Base for errors that abort a whole upload; nothing is persisted."""

    status_code = 500
    code = "INGESTION_FAILED"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputRejected(IngestionError):
    """Upload refused before any external call (type, emptiness or size)."""

    status_code = 400
    code = "INPUT_REJECTED"

    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class ExtractionUnavailable(IngestionError):
    """The inference service call itself failed."""

    status_code = 502
    code = "EXTRACTION_UNAVAILABLE"


class MalformedExtraction(IngestionError):
    """The model response did not decode to a non-empty JSON array."""

    status_code = 422
    code = "MALFORMED_EXTRACTION"


class BatchExhausted(IngestionError):
    """Every candidate in the batch failed validation or persistence."""

    status_code = 422
    code = "BATCH_EXHAUSTED"

    def __init__(self, message: str, failures: list[IngestionFailure]) -> None:
        super().__init__(message)
        self.failures = failures


class ItemInvalid(ValueError):
    """A single candidate failed field validation (recovered per item)."""
