from __future__ import annotations

from typing import Iterable, List, Mapping, Optional

from ..models.chunks import (
    CanonicalChunk,
    StopReason,
    TextNode,
    ThinkingNode,
    ToolMeta,
    ToolUseNode,
    ToolUseStartNode,
)
from ..providers.errors import EmptyResultError
from ..providers.util import make_tool_meta_getter
from .sse import SseStats
from .state import StreamState
from .tool_calls import ToolCallRecord


class ChunkAssembler:
    """Builds canonical chunks for one streaming call.

    Owns the call's ``StreamState``, including the node-id counter shared by
    every node kind. Emission order per call:

    1. text chunks, one per non-empty delta
    2. at most one thinking chunk, after the event loop
    3. tool-use chunks (each optionally preceded by a tool-use-start chunk)
    4. at most one usage chunk
    5. exactly one final chunk
    """

    def __init__(
        self,
        provider: str,
        node_id_start: int = 0,
        support_tool_use_start: bool = False,
        tool_meta_by_name: Optional[Mapping[str, ToolMeta]] = None,
    ):
        """Initialize the assembler.

        Args:
            provider: Provider name, used in error messages
            node_id_start: Node ids continue after this value; invalid or
                negative values start from 0
            support_tool_use_start: Emit tool-use-start chunks
            tool_meta_by_name: Read-only tool metadata lookup
        """
        self.provider = provider
        try:
            start = int(node_id_start)
        except (TypeError, ValueError):
            start = 0
        self.state = StreamState(node_id=start if start >= 0 else 0)
        self.support_tool_use_start = support_tool_use_start
        self._tool_meta = make_tool_meta_getter(tool_meta_by_name)
        self.tool_calls_emitted = 0
        self._thinking_emitted = False
        self._final_emitted = False

    def text_chunk(self, delta: str) -> Optional[CanonicalChunk]:
        """Text chunk for a non-empty delta; None for an empty one."""
        if not delta:
            return None
        node = TextNode(id=self.state.next_node_id(), content=delta)
        self.state.emitted_text_chunks += 1
        self.state.emitted_chunks += 1
        return CanonicalChunk(text=delta, nodes=[node])

    def add_thinking(self, text: str) -> None:
        if text:
            self.state.thinking += text

    def thinking_chunk(self) -> Optional[CanonicalChunk]:
        """The single reasoning chunk, assembled from everything accumulated."""
        summary = self.state.thinking.strip()
        if not summary or self._thinking_emitted:
            return None
        self._thinking_emitted = True
        node = ThinkingNode(id=self.state.next_node_id(), summary=summary)
        self.state.emitted_chunks += 1
        return CanonicalChunk(text="", nodes=[node])

    def tool_use_chunks(self, records: Iterable[ToolCallRecord]) -> List[CanonicalChunk]:
        """Chunks for finalized tool calls, in aggregator order.

        Records with an empty tool name are skipped; missing ids fall back to
        ``call_<next node id>`` and missing arguments to ``{}``.
        """
        chunks: List[CanonicalChunk] = []
        for record in records:
            tool_name = (record.tool_name or "").strip()
            if not tool_name:
                continue
            tool_use_id = (record.tool_use_id or "").strip() or f"call_{self.state.node_id + 1}"
            arguments_json = (record.arguments_json or "").strip() or "{}"
            meta = self._tool_meta(tool_name)

            if self.support_tool_use_start:
                chunks.append(CanonicalChunk(nodes=[ToolUseStartNode(
                    id=self.state.next_node_id(),
                    tool_use_id=tool_use_id,
                    tool_name=tool_name,
                    server_name=meta.server_name,
                    remote_tool_name=meta.remote_tool_name,
                )]))
            chunks.append(CanonicalChunk(nodes=[ToolUseNode(
                id=self.state.next_node_id(),
                tool_use_id=tool_use_id,
                tool_name=tool_name,
                arguments_json=arguments_json,
                server_name=meta.server_name,
                remote_tool_name=meta.remote_tool_name,
            )]))
            self.tool_calls_emitted += 1

        if chunks:
            self.state.saw_tool_use = True
            self.state.emitted_chunks += len(chunks)
        return chunks

    def usage_chunk(self) -> Optional[CanonicalChunk]:
        if not self.state.has_usage:
            return None
        self.state.emitted_chunks += 1
        return CanonicalChunk(usage=self.state.usage)

    def resolve_stop_reason(self, ended_cleanly: bool) -> Optional[StopReason]:
        """
        Stop reason for the final chunk.

        An explicit upstream reason always wins. Without one, a clean end
        defaults to ``tool_use`` (if a tool call was emitted) or ``stop``;
        an unclean end reports no reason.
        """
        if self.state.stop_reason_seen and self.state.stop_reason is not None:
            return self.state.stop_reason
        if ended_cleanly:
            return StopReason.TOOL_USE if self.state.saw_tool_use else StopReason.STOP
        return None

    def final_chunk(self, ended_cleanly: bool) -> CanonicalChunk:
        if self._final_emitted:
            raise RuntimeError("final chunk already emitted for this stream")
        self._final_emitted = True
        self.state.emitted_chunks += 1
        return CanonicalChunk(
            stop_reason=self.resolve_stop_reason(ended_cleanly),
            saw_tool_use=self.state.saw_tool_use,
        )

    @property
    def produced_anything(self) -> bool:
        return (
            self.state.emitted_text_chunks > 0
            or self.state.has_usage
            or self.tool_calls_emitted > 0
        )

    def ensure_not_empty(self, label: str, stats: Optional[SseStats] = None, hint: str = "") -> None:
        """
        Fail the call when the drained stream produced no text, usage or tool call.

        Raises:
            EmptyResultError: With the frame/parse counters, so "upstream sent
                nothing" can be told apart from "upstream sent data we could
                not parse"
        """
        if self.produced_anything:
            return
        stats = stats or SseStats()
        suffix = f"; {hint}" if hint else ""
        raise EmptyResultError(
            message=(
                f"{label} produced no upstream content "
                f"(data_events={stats.data_events}, parsed_chunks={stats.parsed_chunks}){suffix}"
            ),
            provider=self.provider,
            data_events=stats.data_events,
            parsed_chunks=stats.parsed_chunks,
        )
