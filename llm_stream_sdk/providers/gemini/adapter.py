import os
from typing import Any, AsyncGenerator, Dict, Optional

import httpx
from dotenv import load_dotenv

from ...config.constants import DEFAULT_GEMINI_BASE_URL, GEMINI_API_KEY_ENV_VAR, GEMINI_BASE_URL_ENV_VAR
from ...models.chunks import CanonicalChunk
from ...models.streaming import RequestSpec, StreamOptions
from ..base import ProviderError
from .streaming import PROVIDER, gemini_chat_stream_chunks, gemini_complete_text, gemini_stream_text_deltas

# Load environment variables
load_dotenv()


class GeminiProvider:
    """Gemini ``generateContent`` endpoints behind the canonical chunk protocol.

    Request bodies (``contents``, ``tools``, ...) are built by the caller;
    this class only adds the endpoint URL and the API key header.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        options: Optional[StreamOptions] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._api_key = api_key or os.getenv(GEMINI_API_KEY_ENV_VAR)
        self._base_url = (base_url or os.getenv(GEMINI_BASE_URL_ENV_VAR) or DEFAULT_GEMINI_BASE_URL).rstrip("/")
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
        model: str,
        body: Dict[str, Any],
        request_defaults: Optional[Dict[str, Any]] = None,
        stream: bool = True,
    ) -> RequestSpec:
        if not self._api_key:
            raise ProviderError(message="Gemini API key not found in environment variables", provider=PROVIDER)
        method = "streamGenerateContent?alt=sse" if stream else "generateContent"
        return RequestSpec(
            url=f"{self._base_url}/models/{model}:{method}",
            body=body,
            headers={"x-goog-api-key": self._api_key},
            request_defaults=dict(request_defaults or {}),
        )

    def chat_stream(
        self,
        model: str,
        body: Dict[str, Any],
        request_defaults: Optional[Dict[str, Any]] = None,
        options: Optional[StreamOptions] = None,
    ) -> AsyncGenerator[CanonicalChunk, None]:
        request = self.build_request(model, body, request_defaults)
        return gemini_chat_stream_chunks(self.client, request, options or self.options)

    def stream_text(
        self,
        model: str,
        body: Dict[str, Any],
        request_defaults: Optional[Dict[str, Any]] = None,
    ) -> AsyncGenerator[str, None]:
        request = self.build_request(model, body, request_defaults)
        return gemini_stream_text_deltas(self.client, request, self.options)

    async def complete_text(
        self,
        model: str,
        body: Dict[str, Any],
        request_defaults: Optional[Dict[str, Any]] = None,
    ) -> str:
        request = self.build_request(model, body, request_defaults, stream=False)
        return await gemini_complete_text(self.client, request, self.options)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GeminiProvider":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
