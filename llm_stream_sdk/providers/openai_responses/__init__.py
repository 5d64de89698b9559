"""OpenAI Responses (``/responses``) driver."""

from .adapter import OpenAIResponsesProvider
from .streaming import (
    OpenAIResponsesStreamProcessor,
    openai_responses_chat_stream_chunks,
    openai_responses_json_to_chunks,
)
from .text import openai_responses_complete_text, openai_responses_stream_text_deltas

__all__ = [
    "OpenAIResponsesProvider",
    "OpenAIResponsesStreamProcessor",
    "openai_responses_chat_stream_chunks",
    "openai_responses_json_to_chunks",
    "openai_responses_complete_text",
    "openai_responses_stream_text_deltas",
]
