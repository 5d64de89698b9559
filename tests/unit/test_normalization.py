"""Unit tests for stop-reason, usage and index normalization."""

import pytest

from llm_stream_sdk.core.normalization.indexes import first_present, normalize_output_index
from llm_stream_sdk.core.normalization.stop_reason import (
    NOT_SEEN,
    extract_gemini_stop_reason,
    extract_responses_stop_reason,
)
from llm_stream_sdk.core.normalization.usage import (
    extract_gemini_usage,
    extract_responses_usage,
    normalize_usage_int,
    usage_to_log_fields,
)
from llm_stream_sdk.models.chunks import StopReason, TokenUsage
from llm_stream_sdk.streaming.state import StreamState


@pytest.mark.unit
class TestStopReason:
    """Test provider stop-reason mapping."""

    @pytest.mark.parametrize("raw,expected", [
        ("STOP", StopReason.STOP),
        ("MAX_TOKENS", StopReason.MAX_TOKENS),
        ("SAFETY", StopReason.SAFETY),
        ("RECITATION", StopReason.SAFETY),
        ("stop", StopReason.STOP),
        ("MALFORMED_FUNCTION_CALL", StopReason.OTHER),
    ])
    def test_gemini_finish_reason(self, raw, expected):
        """finishReason maps directly; unknown values are other but still seen."""
        result = extract_gemini_stop_reason({"finishReason": raw})

        assert result.stop_reason == expected
        assert result.stop_reason_seen is True

    @pytest.mark.parametrize("candidate", [None, {}, {"finishReason": ""}, {"finishReason": 3}])
    def test_gemini_absent_finish_reason(self, candidate):
        """No finishReason means not seen, not other."""
        assert extract_gemini_stop_reason(candidate) == NOT_SEEN

    @pytest.mark.parametrize("reason,expected", [
        ("max_output_tokens", StopReason.MAX_TOKENS),
        ("content_filter", StopReason.SAFETY),
        ("something_new", StopReason.OTHER),
        (None, StopReason.OTHER),
    ])
    def test_responses_incomplete(self, reason, expected):
        """status=incomplete maps the nested reason; unmapped reasons are other but seen."""
        result = extract_responses_stop_reason({
            "status": "incomplete",
            "incomplete_details": {"reason": reason},
        })

        assert result.stop_reason == expected
        assert result.stop_reason_seen is True

    def test_responses_completed(self):
        """Completed is stop, or tool_use when a function call was produced."""
        plain = extract_responses_stop_reason({"status": "completed", "output": [{"type": "message"}]})
        tool = extract_responses_stop_reason({
            "status": "completed",
            "output": [{"type": "reasoning"}, {"type": "function_call", "name": "lookup"}],
        })

        assert plain.stop_reason == StopReason.STOP
        assert tool.stop_reason == StopReason.TOOL_USE

    @pytest.mark.parametrize("response", [None, {}, {"status": "in_progress"}, {"status": "failed"}])
    def test_responses_other_status_not_seen(self, response):
        """Statuses without a completion meaning are not seen."""
        assert extract_responses_stop_reason(response) == NOT_SEEN


@pytest.mark.unit
class TestUsage:
    """Test usage extraction."""

    @pytest.mark.parametrize("raw,expected", [
        (10, 10),
        (10.9, 10),
        ("7", 7),
        (0, 0),
        (-1, None),
        (float("nan"), None),
        (float("inf"), None),
        (True, None),
        (None, None),
        ("abc", None),
    ])
    def test_normalize_usage_int(self, raw, expected):
        """Counts are floored non-negative finite integers."""
        assert normalize_usage_int(raw) == expected

    def test_gemini_usage_metadata(self):
        """usageMetadata counters map to canonical fields."""
        usage = extract_gemini_usage({"usageMetadata": {
            "promptTokenCount": 12,
            "candidatesTokenCount": 5,
            "cachedContentTokenCount": 4,
        }})

        assert usage == TokenUsage(input_tokens=12, output_tokens=5, cached_input_tokens=4)

    def test_gemini_missing_usage(self):
        """Objects without usageMetadata report nothing."""
        assert not extract_gemini_usage({"candidates": []}).has_any()

    def test_responses_usage(self):
        """Responses usage reads cached tokens from input_tokens_details."""
        usage = extract_responses_usage({
            "input_tokens": 100,
            "output_tokens": 20,
            "input_tokens_details": {"cached_tokens": 64},
        })

        assert usage == TokenUsage(input_tokens=100, output_tokens=20, cached_input_tokens=64)
        assert usage_to_log_fields(usage)["cached_input_tokens"] == 64

    def test_partial_responses_usage(self):
        """Unreported figures stay None rather than zero."""
        usage = extract_responses_usage({"output_tokens": 3})

        assert usage.input_tokens is None
        assert usage.output_tokens == 3
        assert usage.cached_input_tokens is None

    def test_latest_non_null_value_wins(self):
        """Later observations overwrite only the figures they report."""
        state = StreamState()
        state.update_usage(TokenUsage(input_tokens=10, output_tokens=1))
        state.update_usage(TokenUsage(output_tokens=5))
        state.update_usage(TokenUsage(cached_input_tokens=2))

        assert state.usage == TokenUsage(input_tokens=10, output_tokens=5, cached_input_tokens=2)
        assert state.has_usage is True

    def test_stop_reason_seen_is_sticky(self):
        """A later unseen result does not clear an earlier reason."""
        state = StreamState()
        state.update_stop_reason(extract_gemini_stop_reason({"finishReason": "MAX_TOKENS"}))
        state.update_stop_reason(NOT_SEEN)

        assert state.stop_reason_seen is True
        assert state.stop_reason == StopReason.MAX_TOKENS


@pytest.mark.unit
class TestIndexes:
    """Test positional key normalization."""

    @pytest.mark.parametrize("raw,expected", [
        (0, 0),
        (3, 3),
        (2.7, 2),
        (" 4 ", 4),
        (-1, None),
        (float("nan"), None),
        (False, None),
        ("", None),
        ({}, None),
    ])
    def test_normalize_output_index(self, raw, expected):
        """Only finite non-negative numbers are usable keys."""
        assert normalize_output_index(raw) == expected

    def test_first_present(self):
        """The first non-None key wins, falsy values included."""
        payload = {"output_index": None, "outputIndex": 0, "index": 5}

        assert first_present(payload, "output_index", "outputIndex", "index") == 0
        assert first_present(payload, "missing") is None
        assert first_present(None, "index") is None
