"""OpenAI provider (chat completions with image_url parts)."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from .base import BaseProvider, ImageInput, ProviderResult, ProviderUnavailableError

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseProvider):
    name = "openai"

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

        model = model or "gpt-4o-mini-2024-07-18"
        t0 = time.monotonic()

        content: list[dict] = [{"type": "text", "text": prompt}]
        for image in images:
            content.append(
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{image.mime_type};base64,{image.b64()}"},
                }
            )

        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            resp = await client.post(
                "https://api.openai.com/v1/chat/completions",
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
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
        choices = data.get("choices") or []
        if not choices:
            raise ProviderUnavailableError("OpenAI returned no choices")
        text = choices[0].get("message", {}).get("content") or ""
        usage = data.get("usage", {})

        return ProviderResult(
            raw_text=text,
            model=model,
            provider=self.name,
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
            latency_ms=round(elapsed, 2),
        )
