"""
Unit tests for endpoint normalization and ordered fallback.

WHAT: Test candidate dedup, fallback ordering, exhaustion and single attempts
WHY: Failover is what keeps readings available when a server is down
HOW: Scripted attempt coroutines for the driver, respx for real HTTP attempts
"""

import asyncio

import pytest
import respx
import httpx

from app.llm.endpoints import normalize_base_urls, post_attempt, run_with_fallback
from app.llm.types import (
    ExhaustedEndpointsError,
    NoEndpointsError,
    TransportError,
    UpstreamHTTPError,
    UpstreamStreamError,
)


class SlowByteStream(httpx.AsyncByteStream):
    """Response body that stalls before its first chunk."""

    def __init__(self, delay: float):
        self.delay = delay

    async def __aiter__(self):
        await asyncio.sleep(self.delay)
        yield b'{"response":"late","done":true}\n'


@pytest.mark.unit
@pytest.mark.gateway
class TestNormalizeBaseUrls:
    """Test candidate list normalization."""

    def test_dedup_trims_and_strips_trailing_slash(self):
        """Test first-seen order is kept after trimming."""
        assert normalize_base_urls(["http://x/", "http://x", " http://y "]) == ["http://x", "http://y"]

    def test_blank_entries_dropped(self):
        assert normalize_base_urls(["", "   ", None, "/", "http://z"]) == ["http://z"]

    def test_dedup_is_case_sensitive(self):
        assert normalize_base_urls(["http://X", "http://x"]) == ["http://X", "http://x"]


@pytest.mark.unit
@pytest.mark.gateway
class TestRunWithFallback:
    """Test ordered fallback across candidates."""

    @staticmethod
    def scripted_attempt(outcomes: dict, attempted: list):
        """Attempt coroutine raising or returning per base URL."""
        async def attempt(base_url: str):
            attempted.append(base_url)
            outcome = outcomes[base_url]
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        return attempt

    @pytest.mark.asyncio
    async def test_first_success_short_circuits(self):
        """Test later candidates are not tried after a success."""
        attempted = []
        attempt = self.scripted_attempt({"http://a": "answer", "http://b": "unused"}, attempted)

        result, base_url = await run_with_fallback(["http://a", "http://b"], attempt)

        assert result == "answer"
        assert base_url == "http://a"
        assert attempted == ["http://a"]

    @pytest.mark.asyncio
    async def test_falls_back_in_order(self):
        """Test A and B fail (different kinds), C answers."""
        attempted = []
        attempt = self.scripted_attempt({
            "http://a": UpstreamHTTPError("boom", status=500, detail="oops"),
            "http://b": TransportError("refused", detail="ConnectError"),
            "http://c": "from c",
        }, attempted)

        result, base_url = await run_with_fallback(["http://a", "http://b", "http://c"], attempt)

        assert result == "from c"
        assert base_url == "http://c"
        assert attempted == ["http://a", "http://b", "http://c"]

    @pytest.mark.asyncio
    async def test_exhaustion_surfaces_last_error(self):
        """Test the terminal error carries B's status and detail, not A's."""
        error_a = UpstreamHTTPError("a failed", status=500, detail="a body")
        error_b = UpstreamHTTPError("b failed", status=404, detail={"error": "model not found"})
        attempt = self.scripted_attempt({"http://a": error_a, "http://b": error_b}, [])

        with pytest.raises(ExhaustedEndpointsError) as exc_info:
            await run_with_fallback(["http://a", "http://b"], attempt)

        exc = exc_info.value
        assert exc.last_error is error_b
        assert exc.status == 404
        assert exc.http_status == 404
        assert exc.detail == {"error": "model not found"}
        assert exc.base_url == "http://b"
        assert [failure.base_url for failure in exc.failures] == ["http://a", "http://b"]

    @pytest.mark.asyncio
    async def test_exhaustion_without_status_defaults_to_502(self):
        """Test transport-only failures report 502."""
        attempt = self.scripted_attempt({"http://a": TransportError("timed out", detail="timeout")}, [])

        with pytest.raises(ExhaustedEndpointsError) as exc_info:
            await run_with_fallback(["http://a"], attempt)

        assert exc_info.value.status is None
        assert exc_info.value.http_status == 502

    @pytest.mark.asyncio
    async def test_stream_errors_fall_back(self):
        attempted = []
        attempt = self.scripted_attempt({
            "http://a": UpstreamStreamError("model crashed"),
            "http://b": "ok",
        }, attempted)

        result, base_url = await run_with_fallback(["http://a", "http://b"], attempt)
        assert (result, base_url) == ("ok", "http://b")

    @pytest.mark.asyncio
    async def test_empty_candidates(self):
        """Test an empty list fails without attempting anything."""
        attempted = []
        with pytest.raises(NoEndpointsError):
            await run_with_fallback([], self.scripted_attempt({}, attempted))
        assert attempted == []

    @pytest.mark.asyncio
    async def test_unexpected_errors_are_not_absorbed(self):
        """Test programming errors propagate instead of triggering fallback."""
        attempted = []
        attempt = self.scripted_attempt({"http://a": KeyError("bug"), "http://b": "ok"}, attempted)

        with pytest.raises(KeyError):
            await run_with_fallback(["http://a", "http://b"], attempt)
        assert attempted == ["http://a"]

    @pytest.mark.asyncio
    async def test_each_failure_is_logged(self, caplog):
        """Test earlier failures stay observable in the logs."""
        attempt = self.scripted_attempt({
            "http://a": UpstreamHTTPError("a failed", status=500),
            "http://b": UpstreamHTTPError("b failed", status=503),
        }, [])

        with caplog.at_level("WARNING", logger="app.llm.endpoints"):
            with pytest.raises(ExhaustedEndpointsError):
                await run_with_fallback(["http://a", "http://b"], attempt, path="/api/chat")

        messages = [record.getMessage() for record in caplog.records]
        assert any("base_url=http://a" in m and "/api/chat" in m and "a failed" in m for m in messages)
        assert any("base_url=http://b" in m and "b failed" in m for m in messages)


@pytest.mark.unit
@pytest.mark.gateway
class TestPostAttempt:
    """Test a single bounded HTTP attempt."""

    @pytest.mark.asyncio
    async def test_success_buffered(self):
        with respx.mock(assert_all_called=True) as respx_mock:
            respx_mock.post("http://a/api/generate").mock(
                return_value=httpx.Response(200, json={"response": " hi ", "done": True})
            )
            async with httpx.AsyncClient() as client:
                decoded = await post_attempt(
                    client, "http://a", "/api/generate", {"model": "m"}, stream=False, timeout=5.0
                )

        assert decoded.text == "hi"
        assert decoded.done is True

    @pytest.mark.asyncio
    async def test_non_2xx_carries_status_and_body(self):
        """Test error responses are drained into the error detail."""
        with respx.mock() as respx_mock:
            respx_mock.post("http://a/api/chat").mock(
                return_value=httpx.Response(404, json={"error": "model 'x' not found"})
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(UpstreamHTTPError) as exc_info:
                    await post_attempt(client, "http://a", "/api/chat", {}, stream=True, timeout=5.0)

        exc = exc_info.value
        assert exc.status == 404
        assert exc.detail == {"error": "model 'x' not found"}
        assert exc.base_url == "http://a"
        assert exc.path == "/api/chat"
        assert "/api/chat failed: 404" in exc.message

    @pytest.mark.asyncio
    async def test_empty_error_body_uses_reason(self):
        with respx.mock() as respx_mock:
            respx_mock.post("http://a/api/chat").mock(return_value=httpx.Response(503))
            async with httpx.AsyncClient() as client:
                with pytest.raises(UpstreamHTTPError) as exc_info:
                    await post_attempt(client, "http://a", "/api/chat", {}, stream=False, timeout=5.0)

        assert exc_info.value.detail == "Service Unavailable"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        httpx.ConnectError("connection refused"),
        httpx.ReadTimeout("timed out"),
    ])
    async def test_transport_failures(self, error):
        """Test connection failures and timeouts become TransportError."""
        with respx.mock() as respx_mock:
            respx_mock.post("http://a/api/chat").mock(side_effect=error)
            async with httpx.AsyncClient() as client:
                with pytest.raises(TransportError) as exc_info:
                    await post_attempt(client, "http://a", "/api/chat", {}, stream=False, timeout=5.0)

        assert exc_info.value.base_url == "http://a"
        assert exc_info.value.http_status == 502

    @pytest.mark.asyncio
    async def test_stream_error_is_tagged_with_endpoint(self):
        with respx.mock() as respx_mock:
            respx_mock.post("http://a/api/chat").mock(
                return_value=httpx.Response(200, content=b'{"message":{"content":"x"}}\n{"error":"oom"}\n')
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(UpstreamStreamError) as exc_info:
                    await post_attempt(client, "http://a", "/api/chat", {}, stream=True, timeout=5.0)

        assert exc_info.value.base_url == "http://a"
        assert exc_info.value.path == "/api/chat"

    @pytest.mark.asyncio
    async def test_slow_body_hits_attempt_timeout(self):
        """Test a stalled stream is cut off by the per-attempt bound."""
        with respx.mock() as respx_mock:
            respx_mock.post("http://a/api/generate").mock(
                return_value=httpx.Response(200, stream=SlowByteStream(delay=2.0))
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(TransportError) as exc_info:
                    await post_attempt(
                        client, "http://a", "/api/generate", {}, stream=True, timeout=0.2
                    )

        assert exc_info.value.detail == "timeout"
        assert exc_info.value.base_url == "http://a"
        assert exc_info.value.http_status == 502

    @pytest.mark.asyncio
    async def test_timed_out_attempt_falls_back_to_next_endpoint(self):
        with respx.mock() as respx_mock:
            respx_mock.post("http://a/api/generate").mock(
                return_value=httpx.Response(200, stream=SlowByteStream(delay=2.0))
            )
            respx_mock.post("http://b/api/generate").mock(
                return_value=httpx.Response(200, content=b'{"response":"on time","done":true}\n')
            )
            async with httpx.AsyncClient() as client:
                async def attempt(base_url: str):
                    return await post_attempt(
                        client, base_url, "/api/generate", {}, stream=True, timeout=0.2
                    )

                decoded, base_url = await run_with_fallback(["http://a", "http://b"], attempt)

        assert base_url == "http://b"
        assert decoded.text == "on time"
