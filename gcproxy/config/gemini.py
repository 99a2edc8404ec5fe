"""Upstream Gemini and remote image fetch settings."""

import os

from pydantic import BaseModel, Field, SecretStr


def _api_key_from_env() -> SecretStr | None:
    value = os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")
    return SecretStr(value) if value else None


class GeminiSettings(BaseModel):
    """Connection settings for the Gemini generateContent API."""

    api_key: SecretStr | None = Field(
        default_factory=_api_key_from_env,
        description="Gemini API key (falls back to GEMINI_API_KEY / GOOGLE_API_KEY)",
    )

    model: str = Field(
        default="gemini-2.5-pro",
        description="Model used for every request regardless of the requested model",
    )

    base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the Gemini REST API",
    )

    timeout_seconds: float = Field(
        default=300.0,
        description="Read timeout for upstream generation calls",
        gt=0,
    )


class ImageFetchSettings(BaseModel):
    """Limits applied when resolving remote image URLs.

    Generated images can be large (4K output is tens of megabytes), so both
    defaults are generous; they are still hard cutoffs.
    """

    timeout_seconds: float = Field(
        default=120.0,
        description="Maximum time to wait for a remote image",
        gt=0,
    )

    max_size_bytes: int = Field(
        default=50 * 1024 * 1024,
        description="Maximum accepted image size in bytes",
        gt=0,
    )
