from __future__ import annotations

from typing import Any, AsyncGenerator, Iterator, List, Optional

import httpx

from ...core.normalization.stop_reason import extract_gemini_stop_reason
from ...core.normalization.usage import extract_gemini_usage
from ...models.chunks import CanonicalChunk
from ...models.streaming import RequestSpec, StreamOptions
from ...observability.logging import ProviderLogger
from ...reliability.fallback import build_fallback_attempts, fetch_with_fallbacks
from ...streaming.assembler import ChunkAssembler
from ...streaming.sse import SseJsonIterator, SseStats
from ...streaming.text import derive_cumulative_text_delta
from ...streaming.tool_calls import IdKeyedToolCallAggregator
from ..errors import EmptyResultError, UpstreamPayloadError, extract_error_message, payload_has_error
from ..util import assert_sse_response, is_json_response, read_json_body
from .parsers import extract_text_from_gemini_json, first_candidate, iter_gemini_objects, parse_candidate_content

PROVIDER = "gemini"
SSE_HINT = "check that the URL points at Gemini :streamGenerateContent?alt=sse"

_logger = ProviderLogger(PROVIDER)


def _raise_if_error(payload: Any, label: str, include_message: bool = True) -> None:
    if payload_has_error(payload, include_message=include_message):
        message = extract_error_message(payload) or "upstream error"
        raise UpstreamPayloadError(message=f"{label} upstream error: {message}", provider=PROVIDER)


class GeminiStreamProcessor:
    """Applies Gemini candidate objects to one call's state.

    Shared by the SSE path and the buffered-JSON path so both produce the
    same chunk sequence.
    """

    def __init__(self, options: StreamOptions, label: str):
        self.label = label
        self.assembler = ChunkAssembler(
            provider=PROVIDER,
            node_id_start=options.node_id_start,
            support_tool_use_start=options.support_tool_use_start,
            tool_meta_by_name=options.tool_meta_by_name,
        )
        self.tool_calls = IdKeyedToolCallAggregator()
        self._thought_text = ""

    @property
    def state(self):
        return self.assembler.state

    def process(self, payload: Any) -> Optional[CanonicalChunk]:
        """Apply one object; returns a text chunk when it carried new text."""
        _raise_if_error(payload, self.label)
        if not isinstance(payload, dict):
            return None

        self.state.update_usage(extract_gemini_usage(payload))
        candidate = first_candidate(payload)
        self.state.update_stop_reason(extract_gemini_stop_reason(candidate))

        content = parse_candidate_content(candidate)
        for call in content.function_calls:
            self.tool_calls.add(call.tool_name, call.arguments_json, tool_use_id=call.tool_use_id)

        if content.thought:
            thought = derive_cumulative_text_delta(self._thought_text, content.thought)
            self._thought_text = thought.full_text
            self.assembler.add_thinking(thought.delta)

        if not content.text:
            return None
        diff = derive_cumulative_text_delta(self.state.full_text, content.text)
        self.state.full_text = diff.full_text
        return self.assembler.text_chunk(diff.delta)

    def finish(self, stats: SseStats, ended_cleanly: bool) -> List[CanonicalChunk]:
        """Thinking, tool-use, usage and final chunks, after the emptiness guard."""
        chunks: List[CanonicalChunk] = []
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


def gemini_json_to_chunks(
    payload: Any,
    options: Optional[StreamOptions] = None,
    label: str = "Gemini(chat)",
) -> Iterator[CanonicalChunk]:
    """
    Convert a buffered Gemini body (one object or an array of them) to chunks.

    A body that decoded counts as one parsed frame per object for the
    emptiness guard's diagnostics.
    """
    options = options or StreamOptions()
    processor = GeminiStreamProcessor(options, label)
    stats = SseStats()
    objects = list(iter_gemini_objects(payload))
    if payload is not None and not objects:
        _raise_if_error(payload, label)
    for obj in objects:
        stats.data_events += 1
        stats.parsed_chunks += 1
        chunk = processor.process(obj)
        if chunk is not None:
            yield chunk
    # A complete JSON body is a clean end
    yield from processor.finish(stats, ended_cleanly=bool(objects))


async def gemini_chat_stream_chunks(
    client: httpx.AsyncClient,
    request: RequestSpec,
    options: Optional[StreamOptions] = None,
    label: str = "Gemini(chat-stream)",
) -> AsyncGenerator[CanonicalChunk, None]:
    """
    Stream a Gemini chat call as canonical chunks.

    Args:
        client: HTTP client
        request: Streaming request (URL should use ``alt=sse``)
        options: Per-call options
        label: Diagnostic label

    Yields:
        CanonicalChunk: text chunks as they arrive, then thinking, tool-use,
        usage and final chunks

    Raises:
        ProviderError: Any member of the error taxonomy
    """
    options = options or StreamOptions()
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
                for chunk in gemini_json_to_chunks(payload, options, label):
                    yield chunk
                return

            await assert_sse_response(response, label, PROVIDER, expected_hint=SSE_HINT)

            processor = GeminiStreamProcessor(options, label)
            sse = SseJsonIterator.from_response(
                response, done_data=options.done_data, provider=PROVIDER, label=label
            )
            async for frame in sse.events():
                chunk = processor.process(frame.json)
                if chunk is not None:
                    yield chunk

            _logger.log_stream_stats(
                label,
                data_events=sse.stats.data_events,
                parsed_chunks=sse.stats.parsed_chunks,
                emitted_chunks=processor.state.emitted_chunks,
                done_seen=sse.stats.done_seen,
            )
            ended_cleanly = sse.stats.done_seen or processor.state.stop_reason_seen
            if not ended_cleanly:
                _logger.warning("stream ended without a stop signal", label=label, data_events=sse.stats.data_events)
            for chunk in processor.finish(sse.stats, ended_cleanly=ended_cleanly):
                yield chunk
        finally:
            await response.aclose()


async def gemini_stream_text_deltas(
    client: httpx.AsyncClient,
    request: RequestSpec,
    options: Optional[StreamOptions] = None,
    label: str = "Gemini(stream)",
) -> AsyncGenerator[str, None]:
    """Stream plain text deltas (no tools, no structured chunks)."""
    options = options or StreamOptions()
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
            for obj in iter_gemini_objects(payload):
                _raise_if_error(obj, label)
            text = extract_text_from_gemini_json(payload)
            if not text:
                raise EmptyResultError(
                    message=f"{label} JSON response has no candidates[0].content.parts[].text",
                    provider=PROVIDER,
                )
            yield text
            return

        await assert_sse_response(response, label, PROVIDER, expected_hint=SSE_HINT)

        sse = SseJsonIterator.from_response(
            response, done_data=options.done_data, provider=PROVIDER, label=label
        )
        full_text = ""
        emitted = 0
        async for frame in sse.events():
            _raise_if_error(frame.json, label, include_message=False)
            chunk = parse_candidate_content(first_candidate(frame.json)).text
            if not chunk:
                continue
            diff = derive_cumulative_text_delta(full_text, chunk)
            full_text = diff.full_text
            if diff.delta:
                emitted += 1
                yield diff.delta

        if emitted == 0:
            raise EmptyResultError(
                message=(
                    f"{label} produced no text deltas "
                    f"(data_events={sse.stats.data_events}, parsed_chunks={sse.stats.parsed_chunks}); {SSE_HINT}"
                ),
                provider=PROVIDER,
                data_events=sse.stats.data_events,
                parsed_chunks=sse.stats.parsed_chunks,
            )
    finally:
        await response.aclose()


async def gemini_complete_text(
    client: httpx.AsyncClient,
    request: RequestSpec,
    options: Optional[StreamOptions] = None,
    label: str = "Gemini",
) -> str:
    """Non-streaming text completion."""
    options = options or StreamOptions()
    response = await fetch_with_fallbacks(
        client,
        build_fallback_attempts(request),
        label=label,
        provider=PROVIDER,
        timeout=options.timeout,
        logger=_logger,
    )
    try:
        payload = await read_json_body(response, PROVIDER, label)
    finally:
        await response.aclose()
    _raise_if_error(payload, label)
    text = extract_text_from_gemini_json(payload)
    if not text:
        raise EmptyResultError(
            message=f"{label} response has no candidates[0].content.parts[].text",
            provider=PROVIDER,
        )
    return text
