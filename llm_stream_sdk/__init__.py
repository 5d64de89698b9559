"""
LLM Stream SDK - streaming normalization for LLM provider responses.

This package turns streaming (SSE) or buffered (JSON) responses from
multiple provider families into one canonical chunk sequence:
- Gemini (streamGenerateContent)
- OpenAI Responses (/responses)

Features:
- SSE framing with frame/parse diagnostics
- Cumulative-vs-delta text reconciliation
- Tool-call aggregation across id-keyed and index-keyed providers
- Stop-reason and usage normalization
- A single reduced-body retry when a request shape is rejected
"""

__version__ = "0.1.0"

from .models.chunks import (
    CanonicalChunk,
    StopReason,
    TextNode,
    ThinkingNode,
    TokenUsage,
    ToolMeta,
    ToolUseNode,
    ToolUseStartNode,
)
from .models.streaming import RequestSpec, StreamOptions
from .providers.base import ProviderError
from .providers.errors import (
    EmptyResultError,
    RequestShapeRejected,
    TransportError,
    UpstreamPayloadError,
    UpstreamShapeError,
)
from .providers.gemini import (
    GeminiProvider,
    gemini_chat_stream_chunks,
    gemini_complete_text,
    gemini_json_to_chunks,
    gemini_stream_text_deltas,
)
from .providers.openai_responses import (
    OpenAIResponsesProvider,
    openai_responses_chat_stream_chunks,
    openai_responses_complete_text,
    openai_responses_json_to_chunks,
    openai_responses_stream_text_deltas,
)

__all__ = [
    # Canonical chunk protocol
    "CanonicalChunk",
    "StopReason",
    "TextNode",
    "ThinkingNode",
    "TokenUsage",
    "ToolMeta",
    "ToolUseNode",
    "ToolUseStartNode",

    # Call configuration
    "RequestSpec",
    "StreamOptions",

    # Errors
    "ProviderError",
    "TransportError",
    "UpstreamShapeError",
    "UpstreamPayloadError",
    "EmptyResultError",
    "RequestShapeRejected",

    # Gemini
    "GeminiProvider",
    "gemini_chat_stream_chunks",
    "gemini_complete_text",
    "gemini_json_to_chunks",
    "gemini_stream_text_deltas",

    # OpenAI Responses
    "OpenAIResponsesProvider",
    "openai_responses_chat_stream_chunks",
    "openai_responses_complete_text",
    "openai_responses_json_to_chunks",
    "openai_responses_stream_text_deltas",
]
