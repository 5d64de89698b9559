"""
Per-call stream state.

One ``StreamState`` is created at the start of a streaming call, mutated in
place by each processing step and discarded when the call ends. It is never
shared between calls.
"""

from dataclasses import dataclass
from typing import Optional

from ..core.normalization.stop_reason import StopReasonResult
from ..models.chunks import StopReason, TokenUsage


@dataclass
class StreamState:
    node_id: int = 0
    full_text: str = ""
    stop_reason: Optional[StopReason] = None
    stop_reason_seen: bool = False
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    cached_input_tokens: Optional[int] = None
    thinking: str = ""
    emitted_text_chunks: int = 0
    emitted_chunks: int = 0
    saw_tool_use: bool = False

    def next_node_id(self) -> int:
        self.node_id += 1
        return self.node_id

    def update_usage(self, usage: TokenUsage) -> None:
        """Overwrite each figure with the latest non-null observation."""
        if usage.input_tokens is not None:
            self.input_tokens = usage.input_tokens
        if usage.output_tokens is not None:
            self.output_tokens = usage.output_tokens
        if usage.cached_input_tokens is not None:
            self.cached_input_tokens = usage.cached_input_tokens

    def update_stop_reason(self, result: StopReasonResult) -> None:
        if result.stop_reason_seen:
            self.stop_reason_seen = True
            self.stop_reason = result.stop_reason

    @property
    def usage(self) -> TokenUsage:
        return TokenUsage(
            input_tokens=self.input_tokens,
            output_tokens=self.output_tokens,
            cached_input_tokens=self.cached_input_tokens,
        )

    @property
    def has_usage(self) -> bool:
        return self.usage.has_any()
