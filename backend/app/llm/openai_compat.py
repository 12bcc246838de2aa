"""
OpenAI-compatible provider implementation.

WHAT: Chat-completions client for OpenAI-style APIs (hosted or local)
WHY: Alternate upstream when no Ollama server is available
HOW: Bearer-token HTTPX client, non-streaming /chat/completions, same
     ordered endpoint fallback as the Ollama gateway
"""

import asyncio

import httpx

from .endpoints import post_attempt, run_with_fallback
from .types import (
    ChatMessage,
    GatewayConfig,
    GenerationRequest,
    GenerationResult,
    ProviderStatus,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

COMPLETIONS_PATH = "/chat/completions"
MODELS_PATH = "/models"


class OpenAICompatProvider:
    """OpenAI chat-completions provider with endpoint failover."""

    def __init__(self, config: GatewayConfig, client: httpx.AsyncClient | None = None):
        """Initialize provider with an authorized httpx client."""
        self.config = config

        headers = {"Content-Type": "application/json"}
        if config.api_key and config.api_key.strip():
            headers["Authorization"] = f"Bearer {config.api_key}"
        else:
            logger.warning("OPENAI_API_KEY is not set; sending requests without authorization")

        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout, connect=5.0),
            limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
            headers=headers,
        )
        masked = "*" * 10 + config.api_key[-4:] if len(config.api_key) > 4 else "***"
        logger.info(f"OpenAI-compatible provider initialized (model: {config.model}, API key: {masked})")

    def build_payload(self, request: GenerationRequest) -> dict:
        """
        Build the chat-completions body.

        A bare prompt is sent as a single user message. Only temperature and
        max_tokens are forwarded from the options.
        """
        messages: list[ChatMessage] | None = request.messages
        if not (isinstance(messages, list) and messages):
            messages = [{"role": "user", "content": request.prompt or ""}]

        payload = {"model": request.model or self.config.model, "messages": messages}

        options = request.options or {}
        if options.get("temperature") is not None:
            payload["temperature"] = options["temperature"]
        if options.get("max_tokens") is not None:
            payload["max_tokens"] = options["max_tokens"]

        return payload

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Generate complete response (non-streaming).

        Args:
            request: Model plus messages and/or prompt and options

        Returns:
            GenerationResult in chat mode

        Raises:
            NoEndpointsError: No endpoints configured
            ExhaustedEndpointsError: Every endpoint failed
        """
        payload = self.build_payload(request)

        async def attempt(base_url: str):
            return await post_attempt(
                self.client,
                base_url,
                COMPLETIONS_PATH,
                payload,
                stream=False,
                timeout=self.config.timeout,
            )

        decoded, base_url = await run_with_fallback(self.config.base_urls, attempt, path=COMPLETIONS_PATH)

        usage = (decoded.raw_payload or {}).get("usage", {})
        logger.info(
            f"OpenAI-compatible generate success (base_url={base_url}, "
            f"tokens: {usage.get('total_tokens', 'unknown')})"
        )
        return GenerationResult(
            text=decoded.text,
            mode="chat",
            done=decoded.done,
            raw_payload=decoded.raw_payload,
            base_url=base_url,
        )

    async def _ping_endpoint(self, base_url: str) -> ProviderStatus:
        try:
            response = await self.client.get(f"{base_url}{MODELS_PATH}", timeout=10.0)
            response.raise_for_status()
            data = response.json()

            entries = data.get("data") if isinstance(data, dict) else None
            if not isinstance(entries, list):
                entries = []
            models = [model.get("id") for model in entries if isinstance(model, dict)]

            return ProviderStatus(
                available=True,
                base_url=base_url,
                models=models[:10] if models else None,  # Return first 10
            )
        except httpx.TimeoutException:
            logger.warning(f"OpenAI-compatible ping timeout ({base_url})")
            return ProviderStatus(available=False, base_url=base_url, error="Request timed out")
        except httpx.ConnectError:
            logger.warning(f"OpenAI-compatible endpoint not reachable ({base_url})")
            return ProviderStatus(available=False, base_url=base_url, error="Connection refused")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"OpenAI-compatible ping failed ({base_url}): {e}")
            return ProviderStatus(available=False, base_url=base_url, error=str(e))

    async def ping(self) -> list[ProviderStatus]:
        """Check every configured endpoint by fetching its model list."""
        return list(await asyncio.gather(*(self._ping_endpoint(url) for url in self.config.base_urls)))

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
