"""Text-only Responses calls: no tools, no structured chunks."""

from __future__ import annotations

import dataclasses
from typing import AsyncGenerator, Optional

import httpx

from ...models.events import ResponsesEventType
from ...models.streaming import RequestSpec, StreamOptions
from ...observability.logging import ProviderLogger
from ...reliability.fallback import build_fallback_attempts, fetch_with_fallbacks
from ...streaming.sse import SseJsonIterator
from ...streaming.text import OutputTextTracker
from ..base import ProviderError
from ..errors import EmptyResultError, UpstreamPayloadError, extract_error_message
from ..util import assert_sse_response, is_json_response, read_json_body, response_content_type
from .parsers import event_output_index, event_response, extract_text_from_responses_json, output_item_types, response_output
from .streaming import PROVIDER, SSE_HINT, raise_for_error_response

_logger = ProviderLogger(PROVIDER)


async def openai_responses_stream_text_deltas(
    client: httpx.AsyncClient,
    request: RequestSpec,
    options: Optional[StreamOptions] = None,
    label: str = "OpenAI(responses-stream)",
) -> AsyncGenerator[str, None]:
    """Stream plain text deltas of a Responses call."""
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
            raise_for_error_response(payload, label)
            text = extract_text_from_responses_json(payload)
            if not text:
                content_type = response_content_type(response) or "unknown"
                raise EmptyResultError(
                    message=f"{label} JSON response has no text (content-type={content_type})",
                    provider=PROVIDER,
                )
            yield text
            return

        await assert_sse_response(response, label, PROVIDER, expected_hint=SSE_HINT)

        sse = SseJsonIterator.from_response(
            response, done_data=options.done_data, provider=PROVIDER, label=label
        )
        tracker = OutputTextTracker()
        emitted = 0
        async for frame in sse.events():
            kind = ResponsesEventType.parse(frame.event_type, frame.json)
            payload = frame.json if isinstance(frame.json, dict) else {}
            if kind.is_terminal_failure:
                message = extract_error_message(payload) or "upstream error event"
                raise UpstreamPayloadError(message=f"{label} upstream error event: {message}", provider=PROVIDER)

            if kind is ResponsesEventType.OUTPUT_TEXT_DELTA:
                delta = payload.get("delta")
                if not isinstance(delta, str) or not delta:
                    continue
                tracker.push_delta(event_output_index(payload), delta)
                rest = delta
            elif kind is ResponsesEventType.OUTPUT_TEXT_DONE:
                text = payload.get("text")
                rest = tracker.apply_final_text(event_output_index(payload), text if isinstance(text, str) else "")
            elif kind is ResponsesEventType.COMPLETED:
                # Some gateways skip output_text.done and only fill response.output_text
                rest = tracker.apply_final_output_text(extract_text_from_responses_json(event_response(payload)))
            else:
                continue

            if rest:
                emitted += 1
                yield rest

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


async def openai_responses_complete_text(
    client: httpx.AsyncClient,
    request: RequestSpec,
    options: Optional[StreamOptions] = None,
    label: str = "OpenAI(responses)",
) -> str:
    """
    Non-streaming text completion.

    Some ``/responses`` gateways only speak SSE even with ``stream: false``.
    When the JSON body holds neither text nor a function call, the request is
    replayed with ``stream: true`` and the deltas are concatenated.

    Raises:
        UpstreamPayloadError: The body encodes an error, or only a function call
        EmptyResultError: No text could be extracted, even via the stream
    """
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

    raise_for_error_response(payload, label)
    text = extract_text_from_responses_json(payload)
    if text:
        return text

    output = response_output(payload)
    if any(item.get("type") == "function_call" for item in output):
        raise UpstreamPayloadError(
            message=f"{label} returned a function_call; tool calls need the chat stream",
            provider=PROVIDER,
        )

    _logger.debug("no text in JSON body, retrying as a stream", label=label)
    stream_request = dataclasses.replace(request, body={**request.body, "stream": True})
    try:
        parts = [
            delta async for delta in openai_responses_stream_text_deltas(
                client, stream_request, options, label=f"{label}:stream-fallback"
            )
        ]
    except ProviderError as e:
        raise EmptyResultError(
            message=f"{label} response has no text (stream fallback failed: {e.message})",
            provider=PROVIDER,
        ) from e

    text = "".join(parts).strip()
    if text:
        return text
    raise EmptyResultError(
        message=f"{label} response has no text (output_types={output_item_types(output) or 'n/a'})",
        provider=PROVIDER,
    )
