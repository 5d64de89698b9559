"""Shared pytest fixtures for LLM Stream SDK tests."""

import pytest

from llm_stream_sdk.models.chunks import ToolMeta
from llm_stream_sdk.models.streaming import RequestSpec, StreamOptions


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests of a single component")
    config.addinivalue_line("markers", "integration: driver tests over a mock HTTP transport")


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Mock environment variables for testing."""
    env_vars = {
        "GEMINI_API_KEY": "test-gemini-key",
        "OPENAI_API_KEY": "test-openai-key",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def stream_options():
    """Default per-call options."""
    return StreamOptions()


@pytest.fixture
def tool_meta_by_name():
    """Tool metadata for a tool proxied from a remote server."""
    return {"lookup": ToolMeta(server_name="search-server", remote_tool_name="search.lookup")}


@pytest.fixture
def gemini_request():
    """Gemini streaming request with tunable defaults."""
    return RequestSpec(
        url="https://gemini.test/v1beta/models/gemini-test:streamGenerateContent?alt=sse",
        body={"contents": [{"role": "user", "parts": [{"text": "Hi"}]}]},
        headers={"x-goog-api-key": "test-key"},
        request_defaults={
            "generationConfig": {"temperature": 0.2, "maxOutputTokens": 256, "topK": 4},
            "safetySettings": [],
        },
    )


@pytest.fixture
def responses_request():
    """OpenAI Responses streaming request with tunable defaults."""
    return RequestSpec(
        url="https://openai.test/v1/responses",
        body={"model": "gpt-test", "input": "Hi", "stream": True},
        headers={"Authorization": "Bearer test-key"},
        request_defaults={"max_output_tokens": 512, "temperature": 0.3, "reasoning": {"effort": "low"}},
    )
