"""
Application configuration using pydantic-settings.

WHAT: Centralized config from environment variables
WHY: Type-safe, validated config with sensible defaults
HOW: Pydantic BaseSettings reads from .env and environment, then builds
     an immutable GatewayConfig for the LLM layer
"""

from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Literal, Optional
from pathlib import Path

from ..llm.endpoints import normalize_base_urls
from ..llm.types import GatewayConfig


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App metadata
    APP_NAME: str = "Tarot Reader"
    APP_VERSION: str = "0.2.0"
    DEBUG: bool = False
    PORT: int = 5001

    # Model and endpoints. The OPENAI_* names are kept for compatibility with
    # existing deployments even when the upstream is an Ollama server.
    OPENAI_MODEL: str = "tinyllama"
    OPENAI_BASE_URL: str = "http://192.168.1.10:11434"
    LLM_FALLBACK_BASE_URLS: str = ""  # comma-separated, tried after OPENAI_BASE_URL
    OPENAI_API_KEY: str = ""

    # Upstream protocol
    LLM_PROTOCOL: Literal["ollama", "openai"] = "ollama"
    LLM_STREAM: bool = False
    LLM_PREFER_CHAT: bool = True
    LLM_TIMEOUT: float = 60.0  # seconds, per endpoint attempt

    # Default generation options (unset means the upstream default)
    LLM_TEMPERATURE: Optional[float] = None
    LLM_MAX_TOKENS: Optional[int] = None

    # CORS - accepts comma-separated string or list
    CORS_ORIGINS: str = "*"

    @field_validator("CORS_ORIGINS", "LLM_FALLBACK_BASE_URLS", mode="before")
    @classmethod
    def join_list_values(cls, v):
        """Accept either a comma-separated string or a list."""
        if isinstance(v, list):
            return ",".join(str(item) for item in v)
        return v

    def get_cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def get_base_url_candidates(self) -> list[str]:
        """Primary base URL followed by the fallbacks, normalized and deduplicated."""
        return normalize_base_urls(
            [self.OPENAI_BASE_URL, *self.LLM_FALLBACK_BASE_URLS.split(",")]
        )

    def get_default_options(self) -> dict | None:
        """Generation options applied when a request carries none."""
        options = {}
        if self.LLM_TEMPERATURE is not None:
            options["temperature"] = self.LLM_TEMPERATURE
        if self.LLM_MAX_TOKENS is not None:
            options["max_tokens"] = self.LLM_MAX_TOKENS
        return options or None

    def gateway_config(self) -> GatewayConfig:
        """
        Build the immutable gateway configuration.

        Returns:
            GatewayConfig consumed by the provider constructors
        """
        return GatewayConfig(
            model=self.OPENAI_MODEL,
            base_urls=tuple(self.get_base_url_candidates()),
            timeout=self.LLM_TIMEOUT,
            stream=self.LLM_STREAM,
            prefer_chat=self.LLM_PREFER_CHAT,
            protocol=self.LLM_PROTOCOL,
            api_key=self.OPENAI_API_KEY,
        )

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""  # empty disables the file handler

    class Config:
        # Look for .env in the repository root first, then backend/.env
        env_file = [
            str(Path(__file__).parent.parent.parent.parent / ".env"),
            str(Path(__file__).parent.parent.parent / ".env"),
        ]
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Singleton instance
settings = Settings()
