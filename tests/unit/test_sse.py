"""Unit tests for the SSE frame iterator."""

import httpx
import pytest

from llm_stream_sdk.providers.errors import TransportError
from llm_stream_sdk.streaming.sse import SseJsonIterator
from tests.helpers.sse_bodies import collect, lines_from


@pytest.mark.unit
class TestSseJsonIterator:
    """Test frame decoding and diagnostic counters."""

    @pytest.mark.asyncio
    async def test_frames_with_event_types(self):
        """event: lines set the type; data: lines carry the JSON."""
        sse = SseJsonIterator(lines_from(
            "event: response.output_text.delta",
            'data: {"delta": "Hi"}',
            "",
            'data: {"n": 2}',
            "",
        ))

        frames = await collect(sse.events())

        assert [f.event_type for f in frames] == ["response.output_text.delta", None]
        assert frames[0].json == {"delta": "Hi"}
        assert frames[1].json == {"n": 2}
        assert sse.stats.data_events == 2
        assert sse.stats.parsed_chunks == 2
        assert sse.stats.done_seen is False

    @pytest.mark.asyncio
    async def test_sentinel_ends_stream_without_frame(self):
        """The [DONE] payload stops iteration and is never delivered."""
        sse = SseJsonIterator(lines_from(
            'data: {"n": 1}',
            "",
            "data: [DONE]",
            "",
            'data: {"n": 2}',
            "",
        ))

        frames = await collect(sse.events())

        assert [f.json for f in frames] == [{"n": 1}]
        assert sse.stats.done_seen is True
        assert sse.stats.data_events == 2
        assert sse.stats.parsed_chunks == 1

    @pytest.mark.asyncio
    async def test_custom_sentinel(self):
        """A caller-supplied sentinel replaces [DONE]."""
        sse = SseJsonIterator(lines_from("data: END", "", 'data: {"n": 1}', ""), done_data="END")

        frames = await collect(sse.events())

        assert frames == []
        assert sse.stats.done_seen is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("done_data", [None, ""])
    async def test_disabled_sentinel_ignores_empty_frames(self, done_data):
        """Without a sentinel an empty data frame is skipped, not an end of stream."""
        sse = SseJsonIterator(
            lines_from("data: ", "", 'data: {"n": 1}', "", "data: [DONE]", ""),
            done_data=done_data,
        )

        frames = await collect(sse.events())

        assert [f.json for f in frames] == [{"n": 1}]
        assert sse.stats.done_seen is False
        assert sse.stats.data_events == 3
        assert sse.stats.parsed_chunks == 1

    @pytest.mark.asyncio
    async def test_malformed_json_is_counted_and_skipped(self):
        """Bad JSON counts as a data event but not a parsed chunk."""
        sse = SseJsonIterator(lines_from(
            "data: {not json",
            "",
            'data: {"ok": true}',
            "",
        ))

        frames = await collect(sse.events())

        assert [f.json for f in frames] == [{"ok": True}]
        assert sse.stats.data_events == 2
        assert sse.stats.parsed_chunks == 1

    @pytest.mark.asyncio
    async def test_multiline_data_is_joined_with_newlines(self):
        """Consecutive data: lines form one payload."""
        sse = SseJsonIterator(lines_from(
            'data: {"text":',
            'data: "a b"}',
            "",
        ))

        frames = await collect(sse.events())

        assert len(frames) == 1
        assert frames[0].json == {"text": "a b"}
        assert frames[0].data == '{"text":\n"a b"}'

    @pytest.mark.asyncio
    async def test_comments_ignored_and_trailing_frame_flushed(self):
        """Comment lines are skipped; a frame without a closing blank line still arrives."""
        sse = SseJsonIterator(lines_from(
            ": keep-alive",
            "id: 7",
            'data: {"last": 1}',
        ))

        frames = await collect(sse.events())

        assert [f.json for f in frames] == [{"last": 1}]
        assert sse.stats.data_events == 1

    @pytest.mark.asyncio
    async def test_crlf_line_endings(self):
        """Carriage returns left by the line splitter are stripped."""
        sse = SseJsonIterator(lines_from('data: {"n": 1}\r', "\r"))

        frames = await collect(sse.events())

        assert [f.json for f in frames] == [{"n": 1}]

    @pytest.mark.asyncio
    async def test_zero_data_frames(self):
        """An empty body yields nothing and zero counters."""
        sse = SseJsonIterator(lines_from())

        frames = await collect(sse.events())

        assert frames == []
        assert sse.stats.to_dict() == {"data_events": 0, "parsed_chunks": 0, "done_seen": False}

    @pytest.mark.asyncio
    async def test_can_only_be_consumed_once(self):
        """A second pass over events() is rejected."""
        sse = SseJsonIterator(lines_from('data: {"n": 1}', ""))
        await collect(sse.events())

        with pytest.raises(RuntimeError):
            await collect(sse.events())

    @pytest.mark.asyncio
    async def test_transport_error_while_pulling_is_fatal(self):
        """A read failure surfaces as TransportError after earlier frames."""
        async def failing_lines():
            yield 'data: {"n": 1}'
            yield ""
            raise httpx.ReadError("connection reset")

        sse = SseJsonIterator(failing_lines(), provider="gemini", label="Gemini(test)")
        received = []

        with pytest.raises(TransportError) as exc_info:
            async for frame in sse.events():
                received.append(frame.json)

        assert received == [{"n": 1}]
        assert exc_info.value.provider == "gemini"
        assert isinstance(exc_info.value.original_error, httpx.ReadError)
        assert "Gemini(test)" in str(exc_info.value)
