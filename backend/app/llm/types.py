"""
LLM gateway types, dataclasses, and exceptions.

WHAT: Standard type definitions for gateway requests, results and failures
WHY: Ensure consistent contracts between routes, providers and the decoder
HOW: TypedDict for messages, dataclasses for requests/results/config,
     an exception hierarchy rooted at GatewayError
"""

from typing import Any, TypedDict, Literal
from dataclasses import dataclass


# Message format shared by the Ollama chat and OpenAI-style APIs. Role is
# free-form text; "system", "user" and "assistant" are the common values.
ChatMessage = TypedDict(
    "ChatMessage",
    {"role": str, "content": Any}
)

RequestMode = Literal["chat", "generate"]


@dataclass(frozen=True)
class GatewayConfig:
    """Process-wide gateway configuration, built once at startup."""
    model: str
    base_urls: tuple[str, ...]
    timeout: float = 60.0
    stream: bool = False
    prefer_chat: bool = True
    protocol: Literal["ollama", "openai"] = "ollama"
    api_key: str = ""


@dataclass
class GenerationRequest:
    """Logical request handed to a provider by the HTTP layer."""
    model: str
    messages: list[ChatMessage] | None = None
    prompt: str | None = None
    options: dict | None = None


@dataclass
class GenerationResult:
    """Normalized result of one successful endpoint attempt."""
    text: str
    mode: RequestMode
    done: bool
    raw_payload: dict | None
    base_url: str

    @property
    def model(self) -> str | None:
        """Model name reported by the upstream, if any."""
        if isinstance(self.raw_payload, dict):
            return self.raw_payload.get("model")
        return None


@dataclass
class DecodedStream:
    """Final state of a decoded response body."""
    text: str
    raw_payload: dict | None
    done: bool


@dataclass
class ProviderStatus:
    """Health status of one endpoint candidate."""
    available: bool
    base_url: str
    models: list[str] | None = None
    error: str | None = None


@dataclass
class AttemptFailure:
    """One failed endpoint attempt, kept for diagnostics."""
    base_url: str
    error: "GatewayError"


# Gateway exceptions
class GatewayError(Exception):
    """Base class for failures talking to the upstream language service."""

    code = "LLM_ERROR"

    def __init__(
        self,
        message: str,
        *,
        status: Any = None,
        detail: Any = None,
        base_url: str | None = None,
        path: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.detail = detail
        self.base_url = base_url
        self.path = path

    @property
    def http_status(self) -> int:
        """Status to report to the caller; 502 unless upstream gave a usable one."""
        status = self.status
        if isinstance(status, int) and not isinstance(status, bool) and 100 <= status <= 599:
            return status
        return 502


class UpstreamHTTPError(GatewayError):
    """Endpoint answered with a non-2xx status."""
    code = "LLM_UPSTREAM_HTTP_ERROR"


class UpstreamStreamError(GatewayError):
    """Endpoint answered 2xx but the body carried an error field."""
    code = "LLM_UPSTREAM_STREAM_ERROR"


class TransportError(GatewayError):
    """Connection failure or timeout while talking to an endpoint."""
    code = "LLM_TRANSPORT_ERROR"


class NoEndpointsError(GatewayError):
    """No endpoint candidates are configured."""
    code = "LLM_NO_ENDPOINTS"

    def __init__(self, message: str = "No LLM endpoints configured"):
        super().__init__(message, status=503, detail="Set OPENAI_BASE_URL or LLM_FALLBACK_BASE_URLS")


class ExhaustedEndpointsError(GatewayError):
    """Every endpoint candidate failed; carries the last failure's status and detail."""
    code = "LLM_ENDPOINTS_EXHAUSTED"

    def __init__(self, failures: list[AttemptFailure]):
        last = failures[-1]
        super().__init__(
            f"All {len(failures)} LLM endpoint(s) failed; last error from {last.base_url}: {last.error.message}",
            status=last.error.status,
            detail=last.error.detail,
            base_url=last.base_url,
            path=last.error.path,
        )
        self.failures = failures
        self.last_error = last.error


# Failures absorbed by the fallback driver before moving to the next candidate
ATTEMPT_ERRORS = (UpstreamHTTPError, UpstreamStreamError, TransportError)
