"""Provider factory: returns the configured provider or raises when it cannot be used."""

from __future__ import annotations

import logging

from app.core.config import get_settings

from .base import BaseProvider, ImageInput, ProviderResult, ProviderUnavailableError
from .mock import MockProvider

logger = logging.getLogger(__name__)

__all__ = [
    "get_provider",
    "BaseProvider",
    "ImageInput",
    "ProviderResult",
    "ProviderUnavailableError",
    "MockProvider",
]


def get_provider(provider_name: str) -> BaseProvider:
    """Return a provider instance for *provider_name*.

    Unlike a best-effort text scope, receipt extraction has no fallback
    inference path: a provider that is not allowlisted, unknown, or missing
    its API key raises ``ProviderUnavailableError``. ``mock`` is only used
    when asked for by name.
    """
    settings = get_settings()
    name = provider_name.lower().strip()

    if name not in settings.ai_allowed_providers:
        logger.warning("Provider %r not in allowlist", name)
        raise ProviderUnavailableError(f"Provider {name!r} is not allowed")

    if name == "mock":
        return MockProvider()

    if name == "gemini":
        if not settings.gemini_api_key:
            logger.warning("GEMINI_API_KEY not set")
            raise ProviderUnavailableError("GEMINI_API_KEY is not configured")
        from .gemini import GeminiProvider

        return GeminiProvider(api_key=settings.gemini_api_key)

    if name == "claude":
        if not settings.anthropic_api_key:
            logger.warning("ANTHROPIC_API_KEY not set")
            raise ProviderUnavailableError("ANTHROPIC_API_KEY is not configured")
        from .claude import ClaudeProvider

        return ClaudeProvider(api_key=settings.anthropic_api_key)

    if name == "openai":
        if not settings.openai_api_key:
            logger.warning("OPENAI_API_KEY not set")
            raise ProviderUnavailableError("OPENAI_API_KEY is not configured")
        from .openai import OpenAIProvider

        return OpenAIProvider(api_key=settings.openai_api_key)

    logger.warning("Unknown provider %r", name)
    raise ProviderUnavailableError(f"Unknown provider {name!r}")
