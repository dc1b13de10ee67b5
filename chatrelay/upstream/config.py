"""Upstream configuration with environment variable loading.

Pydantic-based settings for the completion API the relay talks to.
Supports OpenAI and OpenAI-compatible APIs via custom base URL.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Load environment variables from .env file
load_dotenv()

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class UpstreamConfig(BaseModel):
    """Configuration for the upstream completion API.

    Attributes:
        api_key: Bearer credential sent with every upstream request.
        base_url: API base URL; requests go to {base_url}/chat/completions.
        timeout: Seconds to wait between streamed reads before giving up.
        connect_timeout: Seconds allowed for establishing the connection.
    """

    # Values from the environment arrive as defaults; validate them too.
    model_config = ConfigDict(validate_default=True)

    api_key: str = Field(
        default_factory=lambda: os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY", ""),
        description="API key for the upstream provider",
    )
    base_url: str = Field(
        default_factory=lambda: os.getenv("LLM_BASE_URL") or DEFAULT_BASE_URL,
        description="Upstream API base URL",
    )
    timeout: float = Field(
        default_factory=lambda: float(os.getenv("UPSTREAM_TIMEOUT", "120")),
        gt=0.0,
        description="Read timeout for the streamed response",
    )
    connect_timeout: float = Field(
        default=10.0,
        gt=0.0,
        description="Timeout for opening the upstream connection",
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate that API key is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError(
                "API key required. Set LLM_API_KEY or OPENAI_API_KEY in .env"
            )
        return v.strip()

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @property
    def completions_url(self) -> str:
        return f"{self.base_url}/chat/completions"


def get_upstream_config() -> UpstreamConfig:
    """Create upstream configuration from environment.

    Returns:
        Configured UpstreamConfig instance.

    Raises:
        ValidationError: If no API key is set.
    """
    return UpstreamConfig()
