"""Streaming layer shared by every provider driver.

This layer handles:
- SSE framing with diagnostic counters
- Cumulative-vs-delta text reconciliation
- Tool-call fragment aggregation (id-keyed and index-keyed)
- Per-call state and canonical chunk assembly
"""

from .assembler import ChunkAssembler
from .sse import Frame, SseJsonIterator, SseStats
from .state import StreamState
from .text import OutputTextTracker, TextDelta, derive_cumulative_text_delta
from .tool_calls import (
    IdKeyedToolCallAggregator,
    IndexKeyedToolCallAggregator,
    ToolCallRecord,
)

__all__ = [
    "ChunkAssembler",
    "Frame",
    "SseJsonIterator",
    "SseStats",
    "StreamState",
    "OutputTextTracker",
    "TextDelta",
    "derive_cumulative_text_delta",
    "IdKeyedToolCallAggregator",
    "IndexKeyedToolCallAggregator",
    "ToolCallRecord",
]
