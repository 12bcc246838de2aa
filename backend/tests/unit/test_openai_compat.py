"""
Unit tests for the OpenAI-compatible provider.

WHAT: Test chat-completions payloads, auth header, failover and ping
WHY: Alternate upstream must behave like the Ollama gateway for callers
HOW: Mock HTTP with respx
"""

import json

import pytest
import respx
import httpx

from app.llm.openai_compat import OpenAICompatProvider
from app.llm.types import ExhaustedEndpointsError, GenerationRequest

COMPLETION = {
    "id": "cmpl-1",
    "model": "gpt-test",
    "choices": [{"message": {"role": "assistant", "content": "  The Star shines.  "}, "finish_reason": "stop"}],
    "usage": {"total_tokens": 42},
}


@pytest.mark.unit
@pytest.mark.gateway
class TestOpenAICompatProvider:
    """Test OpenAI-compatible provider implementation."""

    @pytest.fixture
    def provider(self, make_config):
        """Create provider with two endpoints and an API key."""
        return OpenAICompatProvider(make_config(
            protocol="openai",
            base_urls=("https://primary.example/v1", "https://backup.example/v1"),
            api_key="sk-test-1234",
        ))

    def test_prompt_becomes_user_message(self, provider):
        payload = provider.build_payload(GenerationRequest(model="gpt-test", prompt="Hi"))
        assert payload == {"model": "gpt-test", "messages": [{"role": "user", "content": "Hi"}]}

    def test_options_mapped(self, provider):
        payload = provider.build_payload(GenerationRequest(
            model="gpt-test",
            messages=[{"role": "user", "content": "Hi"}],
            options={"temperature": 0.7, "max_tokens": 200, "top_p": 0.9},
        ))
        assert payload["temperature"] == 0.7
        assert payload["max_tokens"] == 200
        assert "top_p" not in payload
        assert "stream" not in payload

    @pytest.mark.asyncio
    async def test_generate_success(self, provider):
        """Test a completion is trimmed and sent with a bearer token."""
        with respx.mock() as respx_mock:
            route = respx_mock.post("https://primary.example/v1/chat/completions").mock(
                return_value=httpx.Response(200, json=COMPLETION)
            )
            result = await provider.generate(
                GenerationRequest(model="gpt-test", messages=[{"role": "user", "content": "Hi"}])
            )

        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer sk-test-1234"
        assert json.loads(request.content)["model"] == "gpt-test"
        assert result.text == "The Star shines."
        assert result.mode == "chat"
        assert result.done is True
        assert result.model == "gpt-test"

    @pytest.mark.asyncio
    async def test_generate_falls_back(self, provider):
        with respx.mock() as respx_mock:
            respx_mock.post("https://primary.example/v1/chat/completions").mock(
                return_value=httpx.Response(429, json={"error": {"message": "rate limited"}})
            )
            respx_mock.post("https://backup.example/v1/chat/completions").mock(
                return_value=httpx.Response(200, json=COMPLETION)
            )
            result = await provider.generate(GenerationRequest(model="gpt-test", prompt="Hi"))

        assert result.base_url == "https://backup.example/v1"

    @pytest.mark.asyncio
    async def test_error_payload_with_200(self, provider):
        """Test an error object in a 200 body counts as a failed attempt."""
        with respx.mock() as respx_mock:
            respx_mock.post("https://primary.example/v1/chat/completions").mock(
                return_value=httpx.Response(200, json={"error": {"message": "context too long"}})
            )
            respx_mock.post("https://backup.example/v1/chat/completions").mock(
                side_effect=httpx.ConnectError("connection refused")
            )

            with pytest.raises(ExhaustedEndpointsError) as exc_info:
                await provider.generate(GenerationRequest(model="gpt-test", prompt="Hi"))

        assert len(exc_info.value.failures) == 2
        assert exc_info.value.http_status == 502

    @pytest.mark.asyncio
    async def test_ping_success(self, provider):
        with respx.mock() as respx_mock:
            respx_mock.get("https://primary.example/v1/models").mock(
                return_value=httpx.Response(200, json={"data": [{"id": "model-1"}, {"id": "model-2"}]})
            )
            respx_mock.get("https://backup.example/v1/models").mock(
                return_value=httpx.Response(401, json={"error": "unauthorized"})
            )
            statuses = await provider.ping()

        assert statuses[0].available is True
        assert statuses[0].models == ["model-1", "model-2"]
        assert statuses[1].available is False
        assert "401" in statuses[1].error

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [[], {"data": None}])
    async def test_ping_tolerates_unexpected_model_listing(self, provider, body):
        with respx.mock() as respx_mock:
            respx_mock.get("https://primary.example/v1/models").mock(return_value=httpx.Response(200, json=body))
            respx_mock.get("https://backup.example/v1/models").mock(
                return_value=httpx.Response(200, json={"data": [{"id": "model-1"}]})
            )
            statuses = await provider.ping()

        assert statuses[0].available is True
        assert statuses[0].models is None
        assert statuses[1].models == ["model-1"]
