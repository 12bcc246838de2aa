"""LLM gateway layer."""

from .types import (
    ChatMessage,
    GatewayConfig,
    GenerationRequest,
    GenerationResult,
    ProviderStatus,
    GatewayError,
    UpstreamHTTPError,
    UpstreamStreamError,
    TransportError,
    NoEndpointsError,
    ExhaustedEndpointsError,
)
from .provider import LLMProvider
from .provider_factory import get_provider, reset_provider

__all__ = [
    "ChatMessage",
    "GatewayConfig",
    "GenerationRequest",
    "GenerationResult",
    "ProviderStatus",
    "GatewayError",
    "UpstreamHTTPError",
    "UpstreamStreamError",
    "TransportError",
    "NoEndpointsError",
    "ExhaustedEndpointsError",
    "LLMProvider",
    "get_provider",
    "reset_provider",
]
