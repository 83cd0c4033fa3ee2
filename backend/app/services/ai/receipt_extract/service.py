"""Receipt / statement image extraction via a vision-capable model.

A single provider call per upload: no retry, no fallback provider. Any
failure of the call itself surfaces as ``ExtractionUnavailable``.
"""

from __future__ import annotations

import logging

import httpx

from app.core.config import get_settings
from app.services.receipt_ingest.errors import ExtractionUnavailable

from ..common import router as ai_router
from ..common.providers.base import ImageInput, ProviderResult, ProviderUnavailableError
from .contracts import CATEGORY_VOCABULARY

logger = logging.getLogger(__name__)

RECEIPT_EXTRACT_PROMPT = f"""Analyze the attached transaction image (a receipt or a bank statement screenshot).
Extract EVERY distinct transaction visible in the image.

For each transaction, return a JSON object with exactly these fields:
- merchant: the name of the merchant or counterparty (string).
- amount: the transaction amount as a number. Use negative numbers for debits/purchases and positive numbers for credits/income.
- date: the transaction date in "YYYY-MM-DD" format (string). If the year is not shown, assume the current year.
- category: exactly ONE of: {", ".join(CATEGORY_VOCABULARY)} (string).

If a field is unclear or missing for a transaction, use null for that field.

Respond ONLY with a single valid JSON array containing one object per transaction.
Do not include any other text or markdown formatting.
Example: [{{"merchant": "Example Cafe", "amount": -12.50, "date": "2024-03-15", "category": "Dining"}}, {{"merchant": "Salary", "amount": 2000.00, "date": "2024-03-14", "category": "Income"}}]"""


async def extract_receipt_text(
    image_bytes: bytes,
    mime_type: str,
    *,
    override_provider: str | None = None,
    override_model: str | None = None,
) -> ProviderResult:
    """Send the image and the fixed prompt to the resolved provider; return its raw text."""
    settings = get_settings()

    try:
        config = ai_router.resolve(
            "receipt_extract",
            override_provider=override_provider,
            override_model=override_model,
        )
    except ProviderUnavailableError as exc:
        logger.error("Receipt extraction provider unavailable: %s", exc)
        raise ExtractionUnavailable(f"Receipt analysis service is not available: {exc}") from exc

    logger.info(
        "Sending %d-byte %s image to %s (%s) for extraction",
        len(image_bytes),
        mime_type,
        config.provider.name,
        config.model or "default",
    )

    try:
        result = await config.provider.generate(
            RECEIPT_EXTRACT_PROMPT,
            images=[ImageInput(data=image_bytes, mime_type=mime_type)],
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout_seconds=config.timeout_seconds,
        )
    except httpx.HTTPStatusError as exc:
        logger.error(
            "Receipt extraction failed: %s returned HTTP %s",
            config.provider.name,
            exc.response.status_code,
        )
        raise ExtractionUnavailable(
            f"Failed to analyze transaction image: provider returned HTTP {exc.response.status_code}"
        ) from exc
    except (httpx.HTTPError, ProviderUnavailableError, KeyError, ValueError) as exc:
        logger.exception("Receipt extraction call to %s failed", config.provider.name)
        raise ExtractionUnavailable(f"Failed to analyze transaction image: {exc}") from exc

    logger.info(
        "Extraction completed: provider=%s model=%s latency_ms=%.2f tokens=%d/%d",
        result.provider,
        result.model,
        result.latency_ms,
        result.prompt_tokens,
        result.completion_tokens,
    )
    if settings.ai_debug_log_raw:
        logger.info("Raw extraction response: %s", result.raw_text)
    else:
        logger.debug("Raw extraction response (truncated): %s", result.raw_text[:500])

    return result
