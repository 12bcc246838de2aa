"""
Pytest configuration and shared fixtures for backend tests.

WHAT: Centralized test configuration with markers and gateway fixtures
WHY: Enable test organization, filtering, and shared test utilities
HOW: Define pytest markers, fixtures, and test helpers
"""

import pytest

from app.llm.provider_factory import reset_provider
from app.llm.types import GatewayConfig


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (isolated component tests)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (multiple components)"
    )
    config.addinivalue_line(
        "markers", "gateway: Tests of the LLM gateway client (decoder, fallback, providers)"
    )
    config.addinivalue_line(
        "markers", "api: Tests of the FastAPI surface"
    )


@pytest.fixture(autouse=True)
def reset_provider_singleton():
    """
    Reset provider singleton before each test.

    WHAT: Clear provider cache between tests
    WHY: Prevent test pollution and ensure clean state
    HOW: Call reset_provider() before and after each test
    """
    reset_provider()
    yield
    reset_provider()


@pytest.fixture
def make_config():
    """
    Build GatewayConfig values with test-friendly defaults.

    Returns:
        Factory accepting GatewayConfig field overrides
    """
    def _make(**overrides) -> GatewayConfig:
        values = {
            "model": "test-model",
            "base_urls": ("http://llm-a:11434",),
            "timeout": 5.0,
            "stream": False,
            "prefer_chat": True,
            "protocol": "ollama",
            "api_key": "",
        }
        values.update(overrides)
        return GatewayConfig(**values)

    return _make

