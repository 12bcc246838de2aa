"""
Ollama gateway implementation.

WHAT: Chat/generate client for Ollama-style servers with endpoint failover
WHY: Readings should survive a single model server being down
HOW: HTTPX async client, request mode selection, ordered fallback over the
     configured base URLs, buffered or streamed decoding of the answer
"""

import asyncio

import httpx

from .endpoints import post_attempt, run_with_fallback
from .prompt_format import messages_to_prompt
from .types import (
    GatewayConfig,
    GenerationRequest,
    GenerationResult,
    ProviderStatus,
    RequestMode,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

CHAT_PATH = "/api/chat"
GENERATE_PATH = "/api/generate"
TAGS_PATH = "/api/tags"


class OllamaGateway:
    """Ollama provider speaking /api/chat and /api/generate across several endpoints."""

    def __init__(self, config: GatewayConfig, client: httpx.AsyncClient | None = None):
        """
        Initialize the gateway.

        Args:
            config: Immutable gateway configuration
            client: Optional pre-built HTTP client (tests inject one)
        """
        self.config = config
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout, connect=5.0),
            limits=httpx.Limits(
                max_keepalive_connections=10,
                max_connections=20
            ),
            headers={"Content-Type": "application/json"},
        )
        logger.info(
            f"Ollama gateway initialized (model={config.model}, stream={config.stream}, "
            f"endpoints={list(config.base_urls)})"
        )

    @staticmethod
    def translate_options(options: dict | None) -> dict:
        """Rename generic option keys to their Ollama names (max_tokens -> num_predict)."""
        translated = dict(options or {})
        if "max_tokens" in translated:
            translated.setdefault("num_predict", translated["max_tokens"])
            del translated["max_tokens"]
        return translated

    def build_request(self, request: GenerationRequest) -> tuple[RequestMode, str, dict]:
        """
        Choose chat or generate mode and build the upstream body.

        Chat mode is used for a non-empty message list. Otherwise the prompt is
        sent verbatim, or the messages are flattened when no prompt was given.

        Returns:
            Tuple of (mode, path, JSON body)
        """
        model = request.model or self.config.model
        messages = request.messages

        if self.config.prefer_chat and isinstance(messages, list) and messages:
            mode, path = "chat", CHAT_PATH
            payload = {"model": model, "messages": messages, "stream": self.config.stream}
        else:
            mode, path = "generate", GENERATE_PATH
            prompt = request.prompt if isinstance(request.prompt, str) else messages_to_prompt(messages)
            payload = {"model": model, "prompt": prompt, "stream": self.config.stream}

        options = self.translate_options(request.options)
        if options:
            payload["options"] = options

        return mode, path, payload

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Generate a complete answer, falling back across endpoints.

        Args:
            request: Model plus messages and/or prompt and options

        Returns:
            GenerationResult tagged with the base URL that answered

        Raises:
            NoEndpointsError: No endpoints configured
            ExhaustedEndpointsError: Every endpoint failed
        """
        mode, path, payload = self.build_request(request)
        logger.debug(f"Ollama {mode} request (model={payload['model']}, path={path})")

        async def attempt(base_url: str):
            return await post_attempt(
                self.client,
                base_url,
                path,
                payload,
                stream=self.config.stream,
                timeout=self.config.timeout,
            )

        decoded, base_url = await run_with_fallback(self.config.base_urls, attempt, path=path)

        logger.info(f"Ollama {mode} success (base_url={base_url}, chars={len(decoded.text)}, done={decoded.done})")
        return GenerationResult(
            text=decoded.text,
            mode=mode,
            done=decoded.done,
            raw_payload=decoded.raw_payload,
            base_url=base_url,
        )

    async def _ping_endpoint(self, base_url: str) -> ProviderStatus:
        try:
            response = await self.client.get(f"{base_url}{TAGS_PATH}", timeout=5.0)
            response.raise_for_status()
            data = response.json()

            entries = data.get("models") if isinstance(data, dict) else None
            if not isinstance(entries, list):
                entries = []
            models = [m.get("name") for m in entries if isinstance(m, dict)]

            return ProviderStatus(
                available=True,
                base_url=base_url,
                models=models if models else None
            )
        except httpx.TimeoutException:
            logger.warning(f"Ollama ping timed out ({base_url})")
            return ProviderStatus(available=False, base_url=base_url, error="Connection timeout")
        except httpx.ConnectError:
            logger.warning(f"Ollama not reachable ({base_url})")
            return ProviderStatus(
                available=False,
                base_url=base_url,
                error="Connection refused - is Ollama running?"
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Ollama ping failed ({base_url}): {e}")
            return ProviderStatus(available=False, base_url=base_url, error=str(e))

    async def ping(self) -> list[ProviderStatus]:
        """
        Check every configured endpoint.

        Returns:
            One ProviderStatus per base URL, in priority order
        """
        return list(await asyncio.gather(*(self._ping_endpoint(url) for url in self.config.base_urls)))

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
