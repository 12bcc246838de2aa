"""
Endpoint candidates and ordered fallback.

WHAT: Normalize the candidate base URLs and try them one after another
WHY: A single local model server is often offline; a second box or a
     hosted endpoint keeps readings available
HOW: One bounded request-response cycle per candidate, first success wins,
     every failure logged, the last one surfaced inside ExhaustedEndpointsError
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Iterable, TypeVar

import httpx

from .stream_decoder import decode_body, decode_stream
from .types import (
    ATTEMPT_ERRORS,
    AttemptFailure,
    DecodedStream,
    ExhaustedEndpointsError,
    NoEndpointsError,
    TransportError,
    UpstreamHTTPError,
    UpstreamStreamError,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def normalize_base_urls(urls: Iterable[Any]) -> list[str]:
    """
    Normalize candidate base URLs.

    Entries are trimmed and lose their trailing slash; blank entries are
    dropped and the first occurrence of a duplicate wins.

    Args:
        urls: Raw base URLs in priority order

    Returns:
        Deduplicated list preserving first-seen order
    """
    candidates: list[str] = []
    for raw in urls:
        if raw is None:
            continue
        url = str(raw).strip().rstrip("/")
        if url and url not in candidates:
            candidates.append(url)
    return candidates


async def run_with_fallback(
    base_urls: Iterable[str],
    attempt: Callable[[str], Awaitable[T]],
    *,
    path: str = "",
) -> tuple[T, str]:
    """
    Run `attempt` against each base URL in order until one succeeds.

    Args:
        base_urls: Candidates in priority order
        attempt: Coroutine function performing one request against a base URL
        path: Request path, for log context only

    Returns:
        Tuple of (attempt result, base URL that produced it)

    Raises:
        NoEndpointsError: No candidates were given
        ExhaustedEndpointsError: Every candidate failed
    """
    candidates = list(base_urls)
    if not candidates:
        raise NoEndpointsError()

    failures: list[AttemptFailure] = []
    for index, base_url in enumerate(candidates, start=1):
        try:
            result = await attempt(base_url)
        except ATTEMPT_ERRORS as e:
            logger.warning(
                f"LLM endpoint {index}/{len(candidates)} failed "
                f"(base_url={base_url}, path={path}, error={e.code}): {e.message}"
            )
            failures.append(AttemptFailure(base_url=base_url, error=e))
            continue

        if failures:
            logger.info(f"LLM request served by fallback endpoint {base_url} after {len(failures)} failure(s)")
        return result, base_url

    raise ExhaustedEndpointsError(failures)


def _describe_body(body: bytes, reason: str) -> Any:
    """Best-effort diagnostic detail for an error response body."""
    text = body.decode("utf-8", errors="replace").strip()
    if not text:
        return reason
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


async def _exchange(
    client: httpx.AsyncClient,
    base_url: str,
    path: str,
    payload: dict,
    *,
    stream: bool,
    headers: dict | None,
) -> DecodedStream:
    async with client.stream("POST", f"{base_url}{path}", json=payload, headers=headers) as response:
        if not 200 <= response.status_code < 300:
            body = await response.aread()
            raise UpstreamHTTPError(
                f"Upstream {path} failed: {response.status_code}",
                status=response.status_code,
                detail=_describe_body(body, response.reason_phrase),
                base_url=base_url,
                path=path,
            )

        if stream:
            return await decode_stream(response.aiter_bytes())
        return decode_body(await response.aread())


async def post_attempt(
    client: httpx.AsyncClient,
    base_url: str,
    path: str,
    payload: dict,
    *,
    stream: bool,
    timeout: float,
    headers: dict | None = None,
) -> DecodedStream:
    """
    Perform one bounded POST against a single endpoint and decode the answer.

    Args:
        client: Shared async HTTP client
        base_url: Candidate base URL (no trailing slash)
        path: Protocol path, e.g. "/api/chat"
        payload: JSON request body
        stream: Decode the body incrementally instead of buffering it
        timeout: Upper bound in seconds for the whole attempt
        headers: Extra request headers

    Returns:
        DecodedStream for the response body

    Raises:
        UpstreamHTTPError: Non-2xx status
        UpstreamStreamError: Error field inside a 2xx body
        TransportError: Connection failure or timeout
    """
    try:
        return await asyncio.wait_for(
            _exchange(client, base_url, path, payload, stream=stream, headers=headers),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        raise TransportError(
            f"Request to {base_url}{path} timed out after {timeout}s",
            detail="timeout",
            base_url=base_url,
            path=path,
        ) from e
    except httpx.HTTPError as e:
        raise TransportError(
            f"Request to {base_url}{path} failed: {str(e) or type(e).__name__}",
            detail=str(e) or type(e).__name__,
            base_url=base_url,
            path=path,
        ) from e
    except UpstreamStreamError as e:
        e.base_url = base_url
        e.path = path
        raise
