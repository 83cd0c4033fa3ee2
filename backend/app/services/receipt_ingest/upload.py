"""Upload gate for receipt images."""

from __future__ import annotations

import logging
from typing import Optional

from app.core.config import get_settings

from .errors import InputRejected

logger = logging.getLogger(__name__)

IMAGE_MIME_PREFIX = "image/"


def validate_upload(
    content: bytes,
    content_type: Optional[str],
    *,
    filename: Optional[str] = None,
    max_bytes: Optional[int] = None,
) -> str:
    """Accept only non-empty ``image/*`` uploads no larger than the configured ceiling.

    Returns the normalised MIME type (lower-case, parameters dropped).
    Raises ``InputRejected`` otherwise.
    """
    limit = max_bytes if max_bytes is not None else get_settings().receipt_max_upload_bytes

    mime_type = (content_type or "").split(";", 1)[0].strip().lower()
    if not mime_type.startswith(IMAGE_MIME_PREFIX):
        logger.info("Rejected upload %r: content type %r is not an image", filename, content_type)
        raise InputRejected("Only image files are allowed for receipts")

    size = len(content)
    if size == 0:
        raise InputRejected("Please upload a receipt image")
    if size > limit:
        logger.info("Rejected upload %r: %d bytes exceeds %d", filename, size, limit)
        raise InputRejected(
            f"File too large: {size} bytes (limit {limit} bytes)",
            status_code=413,
        )

    return mime_type
