"""Client configuration with environment variable loading.

Pydantic-based configuration for the completion client and for the
settings snapshot captured by new sessions.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()

DEFAULT_BASE_URL = "https://api.cerebras.ai/v1"
DEFAULT_MODEL = "llama3.1-8b"
SUPPORTED_LOCALES = ("en", "ru")


class CerebrasConfig(BaseModel):
    """Configuration for the completion client.

    Attributes:
        api_key: Bearer token for the completion API.
        base_url: API base URL.
        model: Model identifier to use.
        temperature: Sampling temperature (0.0 = deterministic, 2.0 = creative).
        max_tokens: Maximum tokens in generated response.
        top_p: Nucleus sampling probability mass.
        frequency_penalty: Penalty for frequent tokens.
        presence_penalty: Penalty for tokens already present.
        system_prompt: Optional leading system message.
        stream_response: Whether responses are streamed.
        auto_save: Whether sessions are persisted after every change.
        max_history_length: Number of most recent messages sent as context.
        locale: Language of default titles and user-facing strings.
        request_timeout: HTTP timeout in seconds.
    """

    api_key: str = Field(
        default_factory=lambda: os.getenv("CEREBRAS_API_KEY", ""),
        description="API key for the completion provider",
    )
    base_url: str = Field(
        default_factory=lambda: os.getenv("CEREBRAS_BASE_URL") or DEFAULT_BASE_URL,
        description="API base URL",
    )
    model: str = Field(
        default_factory=lambda: os.getenv("CEREBRAS_MODEL", DEFAULT_MODEL),
        description="Model to use",
    )
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4096, ge=1, le=128000)
    top_p: float = Field(default=0.9, ge=0.0, le=1.0)
    frequency_penalty: float = Field(default=0.0, ge=-2.0, le=2.0)
    presence_penalty: float = Field(default=0.0, ge=-2.0, le=2.0)
    system_prompt: str = ""
    stream_response: bool = True
    auto_save: bool = True
    max_history_length: int = Field(default=50, ge=1)
    locale: str = Field(default_factory=lambda: os.getenv("CHAT_LOCALE", "en"))
    request_timeout: float = Field(default=60.0, gt=0)

    @field_validator("api_key")
    @classmethod
    def strip_api_key(cls, v: str) -> str:
        """Strip whitespace from the API key; an empty key is allowed until send."""
        return v.strip()

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths can be appended."""
        return v.rstrip("/")

    @field_validator("locale")
    @classmethod
    def validate_locale(cls, v: str) -> str:
        """Validate that the locale is supported."""
        v = v.lower()
        if v not in SUPPORTED_LOCALES:
            raise ValueError(f"Unsupported locale '{v}', expected one of {SUPPORTED_LOCALES}")
        return v

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def updated(self, **changes: object) -> "CerebrasConfig":
        """Return a validated copy with the given fields replaced."""
        return CerebrasConfig.model_validate({**self.model_dump(), **changes})


def get_config() -> CerebrasConfig:
    """Create client configuration from environment.

    Returns:
        Configured CerebrasConfig instance.
    """
    return CerebrasConfig()
