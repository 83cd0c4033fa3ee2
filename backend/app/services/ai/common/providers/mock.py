"""Mock provider: deterministic responses for tests and local runs."""

from __future__ import annotations

import json
import time
from collections.abc import Sequence

from .base import BaseProvider, ImageInput, ProviderResult

MOCK_RECEIPT_RESPONSE = json.dumps(
    [
        {
            "merchant": "Mock Market",
            "amount": -9.99,
            "date": "2024-01-01",
            "category": "Groceries",
        }
    ]
)


class MockProvider(BaseProvider):
    name = "mock"

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
        t0 = time.monotonic()
        text = MOCK_RECEIPT_RESPONSE
        elapsed = (time.monotonic() - t0) * 1000
        return ProviderResult(
            raw_text=text,
            model=model or "mock-v1",
            provider=self.name,
            prompt_tokens=len(prompt.split()) + len(images),
            completion_tokens=len(text.split()),
            latency_ms=round(elapsed, 2),
        )
