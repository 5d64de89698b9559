from __future__ import annotations

import dataclasses
from typing import Any, AsyncGenerator, Dict, Iterator, List, Optional

import httpx

from ...core.normalization.indexes import first_present
from ...core.normalization.stop_reason import extract_responses_stop_reason
from ...core.normalization.usage import extract_responses_usage
from ...models.chunks import CanonicalChunk
from ...models.events import ResponsesEventType
from ...models.streaming import RequestSpec, StreamOptions
from ...observability.logging import ProviderLogger
from ...reliability.fallback import build_fallback_attempts, fetch_with_fallbacks
from ...streaming.assembler import ChunkAssembler
from ...streaming.sse import SseJsonIterator, SseStats
from ...streaming.text import OutputTextTracker
from ...streaming.tool_calls import IndexKeyedToolCallAggregator
from ..errors import UpstreamPayloadError, extract_error_message, payload_has_error
from ..util import apply_parallel_tool_calls_policy, assert_sse_response, is_json_response, read_json_body
from .parsers import (
    CALL_ID_KEYS,
    event_call_id,
    event_item,
    event_output_index,
    event_response,
    extract_reasoning_summary_from_output,
    extract_text_from_responses_json,
    extract_tool_calls_from_output,
    merge_reasoning_summary,
    reasoning_item_summary,
    response_output,
)

PROVIDER = "openai_responses"
SSE_HINT = "check that the URL points at an OpenAI /responses SSE endpoint"

_logger = ProviderLogger(PROVIDER)


def _string(value: Any) -> str:
    return value if isinstance(value, str) else ""


def raise_for_failure_event(kind: ResponsesEventType, payload: Any, label: str) -> None:
    """Abort the stream on ``response.failed`` / ``response.error`` / ``error``."""
    if not kind.is_terminal_failure:
        return
    if kind is ResponsesEventType.FAILED:
        source = event_response(payload) or payload
        message = extract_error_message(source) or "upstream failed"
        raise UpstreamPayloadError(message=f"{label} upstream failed: {message}", provider=PROVIDER)
    message = extract_error_message(payload) or "upstream error event"
    raise UpstreamPayloadError(message=f"{label} upstream error event: {message}", provider=PROVIDER)


class OpenAIResponsesStreamProcessor:
    """Applies Responses events to one call's state.

    Text is tracked per ``output_index`` and function calls are aggregated by
    index. A final response object (from ``response.completed``,
    ``response.incomplete`` or a buffered JSON body) is merged into the
    aggregator as snapshots once the event loop ends.
    """

    def __init__(self, options: StreamOptions, label: str):
        self.label = label
        self.assembler = ChunkAssembler(
            provider=PROVIDER,
            node_id_start=options.node_id_start,
            support_tool_use_start=options.support_tool_use_start,
            tool_meta_by_name=options.tool_meta_by_name,
        )
        self.tool_calls = IndexKeyedToolCallAggregator()
        self.text = OutputTextTracker()
        self.final_response: Optional[Dict[str, Any]] = None

    @property
    def state(self):
        return self.assembler.state

    def _emit_text(self, delta: str) -> Optional[CanonicalChunk]:
        if not delta:
            return None
        self.state.full_text += delta
        return self.assembler.text_chunk(delta)

    def _snapshot_function_call(self, index: Any, item: Dict[str, Any]) -> None:
        arguments = _string(item.get("arguments")).strip()
        self.tool_calls.replace_arguments(
            index,
            arguments,
            call_id=first_present(item, *CALL_ID_KEYS),
            tool_name=item.get("name"),
        )

    def apply_response_object(self, response: Dict[str, Any]) -> None:
        """Record a (final) response object: stop reason and usage."""
        self.final_response = response
        self.state.update_stop_reason(extract_responses_stop_reason(response))
        self.state.update_usage(extract_responses_usage(response.get("usage")))

    def process(self, event_type: Optional[str], payload: Any) -> Optional[CanonicalChunk]:
        """Apply one event; returns a text chunk when it carried new text."""
        kind = ResponsesEventType.parse(event_type, payload)
        raise_for_failure_event(kind, payload, self.label)
        if not isinstance(payload, dict):
            return None

        if kind in (ResponsesEventType.OUTPUT_ITEM_ADDED, ResponsesEventType.OUTPUT_ITEM_DONE):
            item = event_item(payload)
            if item is None:
                return None
            if item.get("type") == "function_call":
                self._snapshot_function_call(event_output_index(payload), item)
            elif (kind is ResponsesEventType.OUTPUT_ITEM_DONE and item.get("type") == "reasoning"
                  and not self.state.thinking):
                # Streamed summary deltas take precedence over the item snapshot
                self.state.thinking = reasoning_item_summary(item)
            return None

        if kind is ResponsesEventType.FUNCTION_CALL_ARGUMENTS_DELTA:
            self.tool_calls.append_arguments(
                event_output_index(payload),
                payload.get("delta"),
                call_id=event_call_id(payload),
                tool_name=payload.get("name"),
            )
            return None

        if kind is ResponsesEventType.FUNCTION_CALL_ARGUMENTS_DONE:
            self.tool_calls.replace_arguments(
                event_output_index(payload),
                payload.get("arguments"),
                call_id=event_call_id(payload),
                tool_name=payload.get("name"),
            )
            return None

        if kind is ResponsesEventType.OUTPUT_TEXT_DELTA:
            delta = _string(payload.get("delta"))
            self.text.push_delta(event_output_index(payload), delta)
            return self._emit_text(delta)

        if kind is ResponsesEventType.OUTPUT_TEXT_DONE:
            rest = self.text.apply_final_text(event_output_index(payload), _string(payload.get("text")))
            return self._emit_text(rest)

        if kind in (ResponsesEventType.REASONING_SUMMARY_TEXT_DELTA, ResponsesEventType.REASONING_TEXT_DELTA):
            self.assembler.add_thinking(_string(payload.get("delta")))
            return None

        if kind is ResponsesEventType.REASONING_SUMMARY_TEXT_DONE:
            self.state.thinking = merge_reasoning_summary(self.state.thinking, _string(payload.get("text")))
            return None

        if kind is ResponsesEventType.INCOMPLETE:
            response = event_response(payload)
            if response is not None:
                self.apply_response_object(response)
            else:
                self.state.update_stop_reason(extract_responses_stop_reason(payload))
            return None

        if kind is ResponsesEventType.COMPLETED:
            response = event_response(payload)
            if response is None:
                return None
            self.apply_response_object(response)
            rest = self.text.apply_final_output_text(extract_text_from_responses_json(response))
            return self._emit_text(rest)

        return None

    def _merge_final_response(self) -> Optional[CanonicalChunk]:
        response = self.final_response
        if response is None:
            return None
        output = response_output(response)
        for record in extract_tool_calls_from_output(output):
            self.tool_calls.merge_snapshot(record)
        summary = extract_reasoning_summary_from_output(output)
        if summary:
            self.state.thinking = summary
        rest = self.text.apply_final_output_text(extract_text_from_responses_json(response))
        return self._emit_text(rest)

    def finish(self, stats: SseStats, ended_cleanly: bool) -> List[CanonicalChunk]:
        """Remaining text, thinking, tool-use, usage and final chunks."""
        chunks: List[CanonicalChunk] = []
        rest = self._merge_final_response()
        if rest is not None:
            chunks.append(rest)
        thinking = self.assembler.thinking_chunk()
        if thinking is not None:
            chunks.append(thinking)
        chunks.extend(self.assembler.tool_use_chunks(self.tool_calls.finalize()))

        self.assembler.ensure_not_empty(self.label, stats, hint=SSE_HINT)

        usage = self.assembler.usage_chunk()
        if usage is not None:
            _logger.log_usage(usage.usage, label=self.label)
            chunks.append(usage)
        chunks.append(self.assembler.final_chunk(ended_cleanly=ended_cleanly))
        return chunks


def raise_for_error_response(payload: Any, label: str) -> None:
    """A buffered Responses body that encodes an error or a failed status."""
    status = payload.get("status") if isinstance(payload, dict) else None
    if payload_has_error(payload, include_message=False) or status == "failed":
        message = extract_error_message(payload) or "upstream failed"
        raise UpstreamPayloadError(message=f"{label} upstream error: {message}", provider=PROVIDER)


def openai_responses_json_to_chunks(
    payload: Any,
    options: Optional[StreamOptions] = None,
    label: str = "OpenAI(responses-chat)",
) -> Iterator[CanonicalChunk]:
    """
    Convert a buffered Responses object to chunks.

    Produces the same sequence a stream carrying only the final
    ``response.completed`` event would.
    """
    options = options or StreamOptions()
    raise_for_error_response(payload, label)
    processor = OpenAIResponsesStreamProcessor(options, label)
    stats = SseStats()
    if isinstance(payload, dict):
        stats.data_events = stats.parsed_chunks = 1
        processor.apply_response_object(payload)
    yield from processor.finish(stats, ended_cleanly=processor.final_response is not None)


def with_parallel_tool_calls_policy(request: RequestSpec, options: StreamOptions) -> RequestSpec:
    tools = request.body.get("tools")
    has_tools = isinstance(tools, list) and len(tools) > 0
    defaults = apply_parallel_tool_calls_policy(
        request.request_defaults,
        has_tools=has_tools,
        support_parallel_tool_use=options.support_parallel_tool_use,
    )
    return dataclasses.replace(request, request_defaults=defaults)


async def openai_responses_chat_stream_chunks(
    client: httpx.AsyncClient,
    request: RequestSpec,
    options: Optional[StreamOptions] = None,
    label: str = "OpenAI(responses-chat-stream)",
) -> AsyncGenerator[CanonicalChunk, None]:
    """
    Stream an OpenAI Responses call as canonical chunks.

    Args:
        client: HTTP client
        request: Streaming request (body should set ``stream: true``)
        options: Per-call options
        label: Diagnostic label

    Yields:
        CanonicalChunk: text chunks as they arrive, then thinking, tool-use,
        usage and final chunks

    Raises:
        ProviderError: Any member of the error taxonomy
    """
    options = options or StreamOptions()
    request = with_parallel_tool_calls_policy(request, options)
    with _logger.track_request(label):
        response = await fetch_with_fallbacks(
            client,
            build_fallback_attempts(request),
            label=label,
            provider=PROVIDER,
            timeout=options.timeout,
            logger=_logger,
        )
        try:
            if is_json_response(response):
                payload = await read_json_body(response, PROVIDER, label)
                for chunk in openai_responses_json_to_chunks(payload, options, label):
                    yield chunk
                return

            await assert_sse_response(response, label, PROVIDER, expected_hint=SSE_HINT)

            processor = OpenAIResponsesStreamProcessor(options, label)
            sse = SseJsonIterator.from_response(
                response, done_data=options.done_data, provider=PROVIDER, label=label
            )
            async for frame in sse.events():
                chunk = processor.process(frame.event_type, frame.json)
                if chunk is not None:
                    yield chunk

            _logger.log_stream_stats(
                label,
                data_events=sse.stats.data_events,
                parsed_chunks=sse.stats.parsed_chunks,
                emitted_chunks=processor.state.emitted_chunks,
                done_seen=sse.stats.done_seen,
            )
            ended_cleanly = (
                sse.stats.done_seen
                or processor.state.stop_reason_seen
                or processor.final_response is not None
            )
            if not ended_cleanly:
                _logger.warning("stream ended without a stop signal", label=label, data_events=sse.stats.data_events)
            for chunk in processor.finish(sse.stats, ended_cleanly=ended_cleanly):
                yield chunk
        finally:
            await response.aclose()
