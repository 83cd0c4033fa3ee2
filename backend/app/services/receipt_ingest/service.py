"""Receipt ingestion entry point: validate → extract → parse → persist."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.services.ai.receipt_extract.parser import parse_candidates
from app.services.ai.receipt_extract.service import extract_receipt_text

from .errors import BatchExhausted
from .ingestor import IngestionOutcome, ingest_candidates
from .upload import validate_upload

logger = logging.getLogger(__name__)


async def ingest_receipt(
    db: Session,
    image_bytes: bytes,
    mime_type: Optional[str],
    *,
    filename: Optional[str] = None,
    override_provider: Optional[str] = None,
    override_model: Optional[str] = None,
) -> IngestionOutcome:
    """Turn one uploaded image into persisted transactions.

    Raises ``InputRejected``, ``ExtractionUnavailable`` or
    ``MalformedExtraction`` before anything is written, and
    ``BatchExhausted`` when no candidate could be saved. Repeated uploads of
    the same image are not deduplicated.
    """
    normalized_mime = validate_upload(image_bytes, mime_type, filename=filename)
    logger.info("Processing receipt upload %r (%s, %d bytes)", filename, normalized_mime, len(image_bytes))

    provider_result = await extract_receipt_text(
        image_bytes,
        normalized_mime,
        override_provider=override_provider,
        override_model=override_model,
    )
    candidates = parse_candidates(provider_result.raw_text)
    logger.info("Extraction yielded %d candidate transaction(s)", len(candidates))

    outcome = ingest_candidates(db, candidates)

    if not outcome.transactions:
        logger.warning(
            "No transactions saved from %d candidate(s); %d failure(s)",
            outcome.candidates_found,
            len(outcome.failures),
        )
        raise BatchExhausted(
            f"Failed to save any transactions. {len(outcome.failures)} errors occurred.",
            outcome.failures,
        )

    logger.info(
        "Saved %d of %d candidate transaction(s)",
        outcome.saved_count,
        outcome.candidates_found,
    )
    return outcome
