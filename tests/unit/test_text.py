"""Unit tests for text delta reconciliation."""

import pytest

from llm_stream_sdk.streaming.text import OutputTextTracker, derive_cumulative_text_delta


@pytest.mark.unit
class TestCumulativeTextResolver:
    """Test derive_cumulative_text_delta."""

    @pytest.mark.parametrize("previous,suffix", [
        ("", "Hello"),
        ("Hello", " world"),
        ("Hello", ""),
        ("a", "a"),
    ])
    def test_cumulative_resend_yields_suffix(self, previous, suffix):
        """A chunk extending the previous text yields only the new part."""
        result = derive_cumulative_text_delta(previous, previous + suffix)

        assert result.delta == suffix
        assert result.full_text == previous + suffix

    @pytest.mark.parametrize("previous,chunk", [
        ("Hello", "world"),
        ("abc", "ab"),
        ("xyz", "!"),
    ])
    def test_unrelated_chunk_is_a_plain_delta(self, previous, chunk):
        """A chunk not starting with the previous text is appended whole."""
        result = derive_cumulative_text_delta(previous, chunk)

        assert result.delta == chunk
        assert result.full_text == previous + chunk
        assert len(result.full_text) == len(previous) + len(chunk)

    def test_empty_chunk_changes_nothing(self):
        """An empty chunk is an empty delta."""
        result = derive_cumulative_text_delta("Hello", "")

        assert result.delta == ""
        assert result.full_text == "Hello"

    def test_mixed_sequence_never_shrinks(self):
        """Cumulative and delta chunks can alternate."""
        full = ""
        deltas = []
        for chunk in ["Hel", "Hello", " wor", "Hello world"]:
            result = derive_cumulative_text_delta(full, chunk)
            assert len(result.full_text) >= len(full)
            full = result.full_text
            deltas.append(result.delta)

        assert deltas == ["Hel", "lo", " wor", "ld"]
        assert full == "Hello world"


@pytest.mark.unit
class TestOutputTextTracker:
    """Test per-index text tracking."""

    def test_final_text_after_matching_deltas(self):
        """Deltas that already cover the final text leave nothing to emit."""
        tracker = OutputTextTracker()
        tracker.push_delta(0, "a")
        tracker.push_delta(0, "b")

        assert tracker.apply_final_text(0, "ab") == ""
        assert tracker.apply_final_text(0, "abc") == "c"

    def test_apply_final_text_is_idempotent(self):
        """Repeating the same snapshot yields nothing the second time."""
        tracker = OutputTextTracker()
        tracker.push_delta(1, "Hi")

        assert tracker.apply_final_text(1, "Hi there") == " there"
        assert tracker.apply_final_text(1, "Hi there") == ""

    def test_snapshot_without_deltas_is_emitted_whole(self):
        """Gateways that skip deltas only send the final text."""
        tracker = OutputTextTracker()

        assert tracker.apply_final_text(0, "full answer") == "full answer"
        assert tracker.pushed_text(0) == "full answer"

    def test_mismatching_snapshot_is_emitted_whole(self):
        """A snapshot that does not extend the pushed text is returned in full."""
        tracker = OutputTextTracker()
        tracker.push_delta(0, "abc")

        assert tracker.apply_final_text(0, "xyz") == "xyz"
        assert tracker.apply_final_text(0, "xyz") == ""

    def test_indexes_are_tracked_separately(self):
        """Each output index has its own buffer."""
        tracker = OutputTextTracker()
        tracker.push_delta(0, "first")
        tracker.push_delta(2, "second")

        assert tracker.apply_final_text(2, "second!") == "!"
        assert tracker.pushed_text(0) == "first"

    @pytest.mark.parametrize("index", [None, -1, "abc", float("nan"), True])
    def test_invalid_index_maps_to_zero(self, index):
        """Unusable indexes share the default buffer."""
        tracker = OutputTextTracker()
        tracker.push_delta(index, "x")

        assert tracker.pushed_text(0) == "x"

    def test_numeric_string_index(self):
        """Numeric strings are accepted as indexes."""
        tracker = OutputTextTracker()
        tracker.push_delta("3", "x")

        assert tracker.pushed_text(3) == "x"

    def test_output_text_spans_all_indexes(self):
        """A response-level snapshot is compared against every buffer in order."""
        tracker = OutputTextTracker()
        tracker.push_delta(1, "Hello ")
        tracker.push_delta(3, "world")

        assert tracker.apply_final_output_text("Hello world") == ""
        assert tracker.apply_final_output_text("Hello world!") == "!"
        assert tracker.apply_final_output_text("Hello world!") == ""

    def test_output_text_shorter_than_pushed(self):
        """A truncated response-level snapshot emits nothing."""
        tracker = OutputTextTracker()
        tracker.push_delta(0, "Hello world")

        assert tracker.apply_final_output_text("Hello") == ""

    def test_output_text_mismatch_replaces_buffers(self):
        """An unrelated response-level snapshot is emitted once."""
        tracker = OutputTextTracker()
        tracker.push_delta(0, "abc")

        assert tracker.apply_final_output_text("xyz") == "xyz"
        assert tracker.apply_final_output_text("xyz") == ""
