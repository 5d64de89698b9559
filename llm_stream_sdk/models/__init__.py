"""Data models for the streaming engine."""

from .chunks import (
    CanonicalChunk,
    ResponseNode,
    StopReason,
    TextNode,
    ThinkingNode,
    TokenUsage,
    ToolMeta,
    ToolUseNode,
    ToolUseStartNode,
)
from .events import ResponsesEventType
from .streaming import FetchAttempt, RequestSpec, StreamOptions

__all__ = [
    # Canonical chunk protocol
    "CanonicalChunk",
    "ResponseNode",
    "StopReason",
    "TextNode",
    "ThinkingNode",
    "TokenUsage",
    "ToolMeta",
    "ToolUseNode",
    "ToolUseStartNode",

    # Wire events
    "ResponsesEventType",

    # Call configuration
    "FetchAttempt",
    "RequestSpec",
    "StreamOptions",
]
