"""
LLM provider factory with singleton pattern.

WHAT: Factory to get the configured LLM provider
WHY: Centralize provider selection and share one HTTP connection pool
HOW: Read LLM_PROTOCOL from config, build the immutable GatewayConfig once,
     cache the provider singleton, log selection
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .provider import LLMProvider

# Singleton instance
_provider_instance: "LLMProvider | None" = None


def get_provider() -> "LLMProvider":
    """
    Get the configured LLM provider singleton.

    Returns:
        LLMProvider instance based on settings.LLM_PROTOCOL

    Raises:
        ValueError: If protocol name is unknown
    """
    global _provider_instance

    if _provider_instance is None:
        # Import here to avoid circular dependencies
        from ..core.config import settings
        from ..utils.logger import get_logger

        logger = get_logger(__name__)
        config = settings.gateway_config()

        if config.protocol == "ollama":
            from .ollama import OllamaGateway
            _provider_instance = OllamaGateway(config)
        elif config.protocol == "openai":
            from .openai_compat import OpenAICompatProvider
            _provider_instance = OpenAICompatProvider(config)
        else:
            raise ValueError(f"Unknown LLM protocol: {config.protocol}")

        logger.info(f"LLM provider initialized: {config.protocol} ({len(config.base_urls)} endpoint(s))")

    return _provider_instance


def reset_provider() -> None:
    """Reset the provider singleton (useful for testing)."""
    global _provider_instance
    _provider_instance = None


async def close_provider() -> None:
    """Close and drop the provider singleton, if one was created."""
    global _provider_instance
    if _provider_instance is not None:
        await _provider_instance.close()
        _provider_instance = None
