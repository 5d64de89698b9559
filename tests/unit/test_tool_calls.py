"""Unit tests for tool-call aggregation."""

import pytest

from llm_stream_sdk.streaming.tool_calls import (
    IdKeyedToolCallAggregator,
    IndexKeyedToolCallAggregator,
    ToolCallRecord,
    normalize_arguments_json,
    sanitize_tool_hint,
)


@pytest.mark.unit
class TestToolCallHelpers:
    """Test argument and id-hint normalization."""

    def test_normalize_arguments_json(self):
        """Objects serialize compactly; strings pass through; None is {}."""
        assert normalize_arguments_json({"q": "x", "n": 1}) == '{"q":"x","n":1}'
        assert normalize_arguments_json({"city": "Zürich"}) == '{"city":"Zürich"}'
        assert normalize_arguments_json('  {"q":"x"} ') == '{"q":"x"}'
        assert normalize_arguments_json(None) == "{}"
        assert normalize_arguments_json("   ") == "{}"

    def test_sanitize_tool_hint(self):
        """Unsafe characters collapse to underscores; empty names get a default."""
        assert sanitize_tool_hint("web.search v2") == "web_search_v2"
        assert sanitize_tool_hint("") == "tool"
        assert sanitize_tool_hint("...") == "tool"
        assert len(sanitize_tool_hint("x" * 100)) == 48


@pytest.mark.unit
class TestIdKeyedToolCallAggregator:
    """Test id-keyed aggregation (Gemini)."""

    def test_identical_signatures_collapse(self):
        """Retransmitted calls without ids become one record."""
        agg = IdKeyedToolCallAggregator()
        first = agg.add("lookup", '{"q":"x"}')
        second = agg.add("lookup", '{"q":"x"}')

        records = agg.finalize()

        assert first is second
        assert len(records) == 1
        assert records[0].tool_use_id == "tool-lookup-1"

    def test_different_arguments_get_new_ids(self):
        """Distinct signatures produce distinct synthetic ids."""
        agg = IdKeyedToolCallAggregator()
        agg.add("lookup", '{"q":"x"}')
        agg.add("lookup", '{"q":"y"}')

        ids = [r.tool_use_id for r in agg.finalize()]

        assert ids == ["tool-lookup-1", "tool-lookup-2"]

    def test_explicit_id_is_used(self):
        """A provider-supplied id is kept as-is."""
        agg = IdKeyedToolCallAggregator()
        agg.add("lookup", '{"q":"x"}', tool_use_id=" fc_123 ")

        assert agg.finalize()[0].tool_use_id == "fc_123"

    def test_explicit_id_wins_over_synthetic(self):
        """Once the real id shows up it replaces the synthetic one in place."""
        agg = IdKeyedToolCallAggregator()
        agg.add("first", "{}")
        agg.add("lookup", '{"q":"x"}')
        agg.add("lookup", '{"q":"x"}', tool_use_id="fc_1")
        agg.add("lookup", '{"q":"x"}')

        records = agg.finalize()

        assert [r.tool_use_id for r in records] == ["tool-first-1", "fc_1"]
        assert [r.tool_name for r in records] == ["first", "lookup"]

    def test_repeated_explicit_id_keeps_latest_arguments(self):
        """The same id seen twice is one record with the newest arguments."""
        agg = IdKeyedToolCallAggregator()
        agg.add("lookup", '{"q":', tool_use_id="fc_1")
        agg.add("lookup", '{"q":"x"}', tool_use_id="fc_1")

        records = agg.finalize()

        assert len(records) == 1
        assert records[0].arguments_json == '{"q":"x"}'

    def test_first_seen_order_and_empty_names_dropped(self):
        """Records keep arrival order; nameless fragments are ignored."""
        agg = IdKeyedToolCallAggregator()
        agg.add("b", "{}", tool_use_id="id_b")
        assert agg.add("   ", "{}") is None
        agg.add("a", "{}", tool_use_id="id_a")

        assert [r.tool_use_id for r in agg.finalize()] == ["id_b", "id_a"]
        assert len(agg) == 2


@pytest.mark.unit
class TestIndexKeyedToolCallAggregator:
    """Test index-keyed aggregation (OpenAI Responses)."""

    def test_deltas_concatenate_in_arrival_order(self):
        """Argument deltas for one index append."""
        agg = IndexKeyedToolCallAggregator()
        agg.append_arguments(0, "", call_id="call_1", tool_name="lookup")
        agg.append_arguments(0, '{"q":')
        agg.append_arguments(0, '"x"}')

        record = agg.finalize()[0]

        assert record.tool_use_id == "call_1"
        assert record.tool_name == "lookup"
        assert record.arguments_json == '{"q":"x"}'

    def test_snapshot_replaces_accumulated_arguments(self):
        """A done snapshot replaces the deltas, even when shorter."""
        agg = IndexKeyedToolCallAggregator()
        agg.append_arguments(0, '{"q":"x","extra":', tool_name="lookup")
        agg.replace_arguments(0, '{"q":"x"}')

        assert agg.finalize()[0].arguments_json == '{"q":"x"}'

        agg.replace_arguments(0, '{"q"')
        assert agg.finalize()[0].arguments_json == '{"q"'

    def test_empty_snapshot_keeps_arguments(self):
        """A snapshot with only an id back-fills without clearing arguments."""
        agg = IndexKeyedToolCallAggregator()
        agg.append_arguments(0, '{"q":"x"}', tool_name="lookup")
        agg.replace_arguments(0, "", call_id="call_9")

        record = agg.finalize()[0]
        assert record.arguments_json == '{"q":"x"}'
        assert record.tool_use_id == "call_9"

    def test_id_backfill_keeps_order(self):
        """Ids arriving late do not reorder records."""
        agg = IndexKeyedToolCallAggregator()
        agg.append_arguments(3, "{}", tool_name="second")
        agg.append_arguments(1, "{}", tool_name="first")
        agg.replace_arguments(3, "", call_id="call_late")

        records = agg.finalize()

        assert [r.tool_name for r in records] == ["first", "second"]
        assert [r.output_index for r in records] == [1, 3]
        assert records[0].tool_use_id == ""
        assert records[1].tool_use_id == "call_late"

    def test_records_without_name_are_dropped(self):
        """A record never given a name is not finalized."""
        agg = IndexKeyedToolCallAggregator()
        agg.append_arguments(0, '{"q":1}')
        agg.append_arguments(1, "{}", tool_name="named")

        assert [r.tool_name for r in agg.finalize()] == ["named"]

    @pytest.mark.parametrize("index", [None, -1, "x", float("inf")])
    def test_invalid_index_is_ignored(self, index):
        """Fragments with unusable indexes create no record."""
        agg = IndexKeyedToolCallAggregator()

        assert agg.append_arguments(index, "{}", tool_name="lookup") is None
        assert len(agg) == 0

    def test_find_by_call_id(self):
        """Records are found by their back-filled call id."""
        agg = IndexKeyedToolCallAggregator()
        agg.append_arguments("2", "{}", tool_name="lookup")
        agg.replace_arguments(2, "", call_id="call_9")

        assert agg.find_by_call_id(" call_9 ") == 2
        assert agg.find_by_call_id("call_1") is None
        assert agg.find_by_call_id(None) is None

    def test_merge_snapshot_matches_call_id_before_position(self):
        """A final-output call at another position updates the streamed record."""
        agg = IndexKeyedToolCallAggregator()
        agg.append_arguments(1, '{"q":', call_id="call_1", tool_name="lookup")

        agg.merge_snapshot(ToolCallRecord(
            tool_use_id="call_1", tool_name="lookup", arguments_json='{"q":"x"}', output_index=0,
        ))

        records = agg.finalize()
        assert [(r.output_index, r.tool_use_id, r.arguments_json) for r in records] == [
            (1, "call_1", '{"q":"x"}'),
        ]

    def test_merge_snapshot_does_not_overwrite_other_call(self):
        """An unmatched call whose slot is taken gets a new index."""
        agg = IndexKeyedToolCallAggregator()
        agg.append_arguments(0, "{}", call_id="call_a", tool_name="first")

        agg.merge_snapshot(ToolCallRecord(
            tool_use_id="call_b", tool_name="second", arguments_json="{}", output_index=0,
        ))

        assert [(r.output_index, r.tool_use_id) for r in agg.finalize()] == [(0, "call_a"), (1, "call_b")]
