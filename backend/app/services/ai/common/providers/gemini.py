"""Google Gemini provider (generateContent REST API)."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from .base import BaseProvider, ImageInput, ProviderResult, ProviderUnavailableError

logger = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


class GeminiProvider(BaseProvider):
    name = "gemini"

    def __init__(self, api_key: str) -> None:
        self._api_key = api_key

    async def generate(
        self,
        prompt: str,
        *,
        images: Sequence[ImageInput] = (),
        model: str = "",
        temperature: float = 0.1,
        max_tokens: int = 2048,
        timeout_seconds: float | None = None,
    ) -> ProviderResult:
        import httpx

        model = model or "gemini-2.0-flash"
        t0 = time.monotonic()

        parts: list[dict] = [{"text": prompt}]
        for image in images:
            parts.append({"inline_data": {"mime_type": image.mime_type, "data": image.b64()}})

        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            resp = await client.post(
                f"{GEMINI_API_BASE}/models/{model}:generateContent",
                headers={
                    "x-goog-api-key": self._api_key,
                    "Content-Type": "application/json",
                },
                json={
                    "contents": [{"role": "user", "parts": parts}],
                    "generationConfig": {
                        "temperature": temperature,
                        "maxOutputTokens": max_tokens,
                    },
                },
            )
            resp.raise_for_status()
            data = resp.json()

        elapsed = (time.monotonic() - t0) * 1000
        candidates = data.get("candidates") or []
        if not candidates:
            block_reason = (data.get("promptFeedback") or {}).get("blockReason", "unknown")
            raise ProviderUnavailableError(f"Gemini returned no candidates (blockReason={block_reason})")

        content_parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in content_parts if isinstance(p, dict))
        usage = data.get("usageMetadata", {})

        return ProviderResult(
            raw_text=text,
            model=model,
            provider=self.name,
            prompt_tokens=usage.get("promptTokenCount", 0),
            completion_tokens=usage.get("candidatesTokenCount", 0),
            latency_ms=round(elapsed, 2),
        )
