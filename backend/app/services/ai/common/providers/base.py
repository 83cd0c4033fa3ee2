"""Abstract base for all AI providers."""

from __future__ import annotations

import abc
import base64
from collections.abc import Sequence
from dataclasses import dataclass


class ProviderUnavailableError(RuntimeError):
    """Raised when a provider cannot be constructed or its call fails."""


@dataclass(frozen=True)
class ImageInput:
    """An inline image attached to a prompt."""

    data: bytes
    mime_type: str

    def b64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


@dataclass(frozen=True)
class ProviderResult:
    """Immutable result returned by every provider."""

    raw_text: str
    model: str
    provider: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    latency_ms: float = 0.0


class BaseProvider(abc.ABC):
    """Contract that every AI provider must implement."""

    name: str = "base"

    @abc.abstractmethod
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
        """Send *prompt* (plus any *images*) and return a ``ProviderResult``."""
