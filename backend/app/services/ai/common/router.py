"""Provider/model resolution for AI scopes.

Each scope reads its own ``AI_<SCOPE>_PROVIDER`` / ``_MODEL`` /
``_TIMEOUT_SECONDS`` settings; per-request overrides win when
``ENABLE_AI_OVERRIDES`` is on. Models are checked against
``AI_ALLOWED_MODELS``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.core.config import Settings, get_settings

from .providers import BaseProvider, ProviderUnavailableError, get_provider

logger = logging.getLogger(__name__)

# scope -> settings attribute prefix
SCOPE_SETTINGS = {
    "receipt_extract": "ai_receipt_extract",
}


@dataclass(frozen=True)
class ResolvedConfig:
    """Provider instance plus generation parameters for one call."""

    provider: BaseProvider
    model: str
    temperature: float
    max_tokens: int
    timeout_seconds: float | None


def _scope_value(settings: Settings, scope: str, key: str):
    return getattr(settings, f"{SCOPE_SETTINGS[scope]}_{key}")


def _pick_provider_name(settings: Settings, scope: str, override: str | None) -> str:
    if settings.enable_ai_overrides and override and override.strip():
        return override.strip().lower()
    configured = (_scope_value(settings, scope, "provider") or "").strip().lower()
    if not configured:
        raise ProviderUnavailableError(f"No AI provider configured for scope {scope!r}")
    return configured


def _pick_model(settings: Settings, scope: str, provider_name: str, override: str | None) -> str:
    model = ""
    if settings.enable_ai_overrides and override:
        model = override.strip()
    if not model:
        model = (_scope_value(settings, scope, "model") or "").strip()

    allowed = settings.ai_allowed_models.get(provider_name, [])
    if not allowed:
        # Empty model lets the provider use its own default.
        return model
    if model not in allowed:
        if model:
            logger.warning("Model %r not allowed for %r; using %r", model, provider_name, allowed[0])
        return allowed[0]
    return model


def resolve(
    scope: str,
    *,
    override_provider: str | None = None,
    override_model: str | None = None,
) -> ResolvedConfig:
    """Resolve the provider and model for *scope*.

    Precedence is request override, then scope settings. Raises
    ``ProviderUnavailableError`` for an unknown scope, a scope with no
    provider configured, or a provider that cannot be built.
    """
    if scope not in SCOPE_SETTINGS:
        raise ProviderUnavailableError(f"Unknown AI scope {scope!r}")
    settings = get_settings()

    provider_name = _pick_provider_name(settings, scope, override_provider)
    model = _pick_model(settings, scope, provider_name, override_model)
    provider = get_provider(provider_name)

    logger.debug("Resolved scope %r to %s/%s", scope, provider_name, model or "default")
    return ResolvedConfig(
        provider=provider,
        model=model,
        temperature=settings.ai_temperature,
        max_tokens=settings.ai_max_tokens,
        timeout_seconds=_scope_value(settings, scope, "timeout_seconds"),
    )
