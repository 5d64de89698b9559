"""Gemini (``streamGenerateContent``) driver."""

from .adapter import GeminiProvider
from .streaming import (
    GeminiStreamProcessor,
    gemini_chat_stream_chunks,
    gemini_complete_text,
    gemini_json_to_chunks,
    gemini_stream_text_deltas,
)

__all__ = [
    "GeminiProvider",
    "GeminiStreamProcessor",
    "gemini_chat_stream_chunks",
    "gemini_complete_text",
    "gemini_json_to_chunks",
    "gemini_stream_text_deltas",
]
