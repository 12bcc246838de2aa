"""
LLM provider protocol definition.

WHAT: Abstract interface for LLM providers
WHY: Decouple route handlers from the upstream protocol in use
HOW: Use Protocol to define async methods for ping, generate, and close
"""

from typing import Protocol
from .types import GenerationRequest, GenerationResult, ProviderStatus


class LLMProvider(Protocol):
    """Protocol defining the interface all LLM providers must implement."""

    async def ping(self) -> list[ProviderStatus]:
        """Check availability of every configured endpoint."""
        ...

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Generate a complete response, falling back across endpoints."""
        ...

    async def close(self) -> None:
        """Release the underlying HTTP client."""
        ...
