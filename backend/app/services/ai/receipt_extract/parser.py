"""Decode the raw model text into candidate transactions."""

from __future__ import annotations

import logging

from app.services.receipt_ingest.errors import MalformedExtraction

from ..common.json_tools import NOT_FOUND, extract_json
from .contracts import CandidateTransaction

logger = logging.getLogger(__name__)


def parse_candidates(raw_text: str) -> list[CandidateTransaction]:
    """Return one ``CandidateTransaction`` per element of the model's JSON array.

    Raises ``MalformedExtraction`` when the text is undecodable, decodes to
    anything other than a list, or decodes to an empty list. Elements are
    wrapped without any field-level checks.
    """
    parsed = extract_json(raw_text or "")

    if parsed is NOT_FOUND:
        logger.warning("Model response is not valid JSON: %r", (raw_text or "")[:200])
        raise MalformedExtraction("Failed to parse extraction response: no valid JSON found")

    if not isinstance(parsed, list):
        logger.warning("Model response was %s, not a JSON array", type(parsed).__name__)
        raise MalformedExtraction(
            f"Extraction response was not in the expected array format (got {_json_type(parsed)})"
        )

    if not parsed:
        raise MalformedExtraction("Could not extract any transaction data from the uploaded image")

    return [CandidateTransaction(index=i, raw=item) for i, item in enumerate(parsed)]


def _json_type(value: object) -> str:
    if isinstance(value, dict):
        return "object"
    if isinstance(value, str):
        return "string"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if value is None:
        return "null"
    return type(value).__name__
