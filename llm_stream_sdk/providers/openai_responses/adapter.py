import os
from typing import Any, AsyncGenerator, Dict, Optional

import httpx
from dotenv import load_dotenv

from ...config.constants import DEFAULT_OPENAI_BASE_URL, OPENAI_API_KEY_ENV_VAR, OPENAI_BASE_URL_ENV_VAR
from ...models.chunks import CanonicalChunk
from ...models.streaming import RequestSpec, StreamOptions
from ..base import ProviderError
from .streaming import PROVIDER, openai_responses_chat_stream_chunks
from .text import openai_responses_complete_text, openai_responses_stream_text_deltas

# Load environment variables
load_dotenv()


class OpenAIResponsesProvider:
    """OpenAI-compatible ``/responses`` endpoint behind the canonical chunk protocol.

    The caller builds the body (``model``, ``input``, ``tools``, ...); this
    class sets ``stream`` and adds the endpoint URL and bearer token.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        options: Optional[StreamOptions] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._api_key = api_key or os.getenv(OPENAI_API_KEY_ENV_VAR)
        self._base_url = (base_url or os.getenv(OPENAI_BASE_URL_ENV_VAR) or DEFAULT_OPENAI_BASE_URL).rstrip("/")
        self.options = options or StreamOptions.from_env()
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy initialization of the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.options.client_timeout)
        return self._client

    def build_request(
        self,
        body: Dict[str, Any],
        request_defaults: Optional[Dict[str, Any]] = None,
        stream: bool = True,
    ) -> RequestSpec:
        if not self._api_key:
            raise ProviderError(message="OpenAI API key not found in environment variables", provider=PROVIDER)
        return RequestSpec(
            url=f"{self._base_url}/responses",
            body={**body, "stream": stream},
            headers={"Authorization": f"Bearer {self._api_key}"},
            request_defaults=dict(request_defaults or {}),
        )

    def chat_stream(
        self,
        body: Dict[str, Any],
        request_defaults: Optional[Dict[str, Any]] = None,
        options: Optional[StreamOptions] = None,
    ) -> AsyncGenerator[CanonicalChunk, None]:
        request = self.build_request(body, request_defaults)
        return openai_responses_chat_stream_chunks(self.client, request, options or self.options)

    def stream_text(
        self,
        body: Dict[str, Any],
        request_defaults: Optional[Dict[str, Any]] = None,
    ) -> AsyncGenerator[str, None]:
        request = self.build_request({**body, "tools": []}, request_defaults)
        return openai_responses_stream_text_deltas(self.client, request, self.options)

    async def complete_text(
        self,
        body: Dict[str, Any],
        request_defaults: Optional[Dict[str, Any]] = None,
    ) -> str:
        request = self.build_request({**body, "tools": []}, request_defaults, stream=False)
        return await openai_responses_complete_text(self.client, request, self.options)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "OpenAIResponsesProvider":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
