"""JSON recovery helpers for raw LLM responses."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCE_OPEN_RE = re.compile(r"^\s*```[A-Za-z0-9_-]*[ \t]*\n?")
_FENCE_CLOSE_RE = re.compile(r"\n?[ \t]*```\s*$")

_decoder = json.JSONDecoder()

# Sentinel distinguishing "nothing decodable" from a decoded JSON ``null``.
NOT_FOUND: Any = object()


def strip_code_fence(text: str) -> str:
    """Remove a leading ```` ```json ```` marker and a trailing ```` ``` ```` marker."""
    cleaned = _FENCE_OPEN_RE.sub("", text, count=1)
    cleaned = _FENCE_CLOSE_RE.sub("", cleaned, count=1)
    return cleaned.strip()


def extract_json(text: str) -> Any:
    """Decode *text* as JSON, falling back to the first embedded JSON value.

    Strategy:
    1. Strip code fences and ``json.loads`` the remainder (fast path). Any
       JSON value is returned, scalars included.
    2. Scan for ``{`` or ``[`` and ``raw_decode`` from each position; the
       first container that decodes wins.
    3. Return ``NOT_FOUND`` if nothing decodes, or as soon as nesting is
       too deep for the decoder.
    """
    if not text or not text.strip():
        return NOT_FOUND

    stripped = strip_code_fence(text)

    try:
        return json.loads(stripped)
    except RecursionError:
        logger.warning("JSON nesting too deep to decode (%d chars)", len(stripped))
        return NOT_FOUND
    except ValueError:
        pass

    for i, ch in enumerate(stripped):
        if ch not in "{[":
            continue
        try:
            value, _end = _decoder.raw_decode(stripped, i)
        except RecursionError:
            logger.warning("JSON nesting too deep to decode at offset %d", i)
            return NOT_FOUND
        except ValueError:
            continue
        logger.debug("Recovered embedded JSON at offset %d", i)
        return value

    return NOT_FOUND
