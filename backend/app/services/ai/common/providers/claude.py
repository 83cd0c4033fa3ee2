"""Anthropic / Claude provider."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from .base import BaseProvider, ImageInput, ProviderResult, ProviderUnavailableError

logger = logging.getLogger(__name__)


class ClaudeProvider(BaseProvider):
    name = "claude"

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

        model = model or "claude-3-5-haiku-20241022"
        t0 = time.monotonic()

        # Messages API expects images before the instruction text.
        content: list[dict] = [
            {
                "type": "image",
                "source": {"type": "base64", "media_type": image.mime_type, "data": image.b64()},
            }
            for image in images
        ]
        content.append({"type": "text", "text": prompt})

        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            resp = await client.post(
                "https://api.anthropic.com/v1/messages",
                headers={
                    "x-api-key": self._api_key,
                    "anthropic-version": "2023-06-01",
                    "content-type": "application/json",
                },
                json={
                    "model": model,
                    "max_tokens": max_tokens,
                    "temperature": temperature,
                    "messages": [{"role": "user", "content": content}],
                },
            )
            resp.raise_for_status()
            data = resp.json()

        elapsed = (time.monotonic() - t0) * 1000
        blocks = [b for b in data.get("content") or [] if b.get("type") == "text"]
        if not blocks:
            raise ProviderUnavailableError("Claude returned no text content")
        text = "".join(b.get("text", "") for b in blocks)
        usage = data.get("usage", {})

        return ProviderResult(
            raw_text=text,
            model=model,
            provider=self.name,
            prompt_tokens=usage.get("input_tokens", 0),
            completion_tokens=usage.get("output_tokens", 0),
            latency_ms=round(elapsed, 2),
        )
