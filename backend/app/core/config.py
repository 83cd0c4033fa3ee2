from functools import lru_cache
import json
from typing import Annotated, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_models_value(value) -> dict[str, list[str]]:
    if not value:
        return {}
    if isinstance(value, dict):
        return {str(k).lower(): [str(m).strip() for m in v if str(m).strip()] for k, v in value.items()}
    if isinstance(value, str):
        raw = value.strip()
        if raw == "":
            return {}
        parsed = json.loads(raw)
        if not isinstance(parsed, dict):
            raise ValueError("AI_ALLOWED_MODELS must be a JSON object")
        return _parse_models_value(parsed)
    raise ValueError("AI_ALLOWED_MODELS must be a JSON object")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="forbid",
        validate_by_name=True,
        populate_by_name=True,
    )
    database_url: str = ""
    database_auto_create: bool = False

    log_level: str = "INFO"
    expose_error_details: bool = False
    docs_enabled: bool = Field(default=True)
    openapi_enabled: bool = Field(default=True)

    cors_allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=list)
    cors_allow_methods: Annotated[list[str], NoDecode] = Field(default_factory=lambda: [
        "GET",
        "POST",
        "OPTIONS",
    ])
    cors_allow_headers: Annotated[list[str], NoDecode] = Field(default_factory=lambda: [
        "Authorization",
        "Content-Type",
        "Accept",
    ])

    receipt_max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        validation_alias=AliasChoices("RECEIPT_MAX_UPLOAD_BYTES", "MAX_UPLOAD_BYTES"),
    )

    ai_receipt_extract_provider: str = "gemini"
    ai_receipt_extract_model: str = ""
    # None disables the client-side timeout entirely.
    ai_receipt_extract_timeout_seconds: Optional[float] = None
    ai_temperature: float = 0.1
    ai_max_tokens: int = 2048
    ai_debug_log_raw: bool = False

    enable_ai_overrides: bool = False
    ai_allowed_providers: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["gemini", "openai", "claude", "mock"],
    )
    ai_allowed_models: dict[str, list[str]] = Field(default_factory=dict)

    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    )
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    @field_validator(
        "cors_allow_origins",
        "cors_allow_methods",
        "cors_allow_headers",
        "ai_allowed_providers",
        mode="before",
    )
    @classmethod
    def _split_csv(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            if value.strip() == "":
                return []
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("ai_allowed_providers", mode="after")
    @classmethod
    def _lower_providers(cls, value: list[str]) -> list[str]:
        return [item.lower() for item in value]

    @field_validator("ai_allowed_models", mode="before")
    @classmethod
    def _parse_models(cls, value):
        return _parse_models_value(value)

    @field_validator("ai_receipt_extract_timeout_seconds", mode="before")
    @classmethod
    def _blank_timeout(cls, value):
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("receipt_max_upload_bytes")
    @classmethod
    def _positive_limit(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("RECEIPT_MAX_UPLOAD_BYTES must be positive")
        return value

@lru_cache

def get_settings() -> Settings:
    return Settings()
