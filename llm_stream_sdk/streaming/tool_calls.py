"""
Tool-call aggregation for streaming responses.

Providers deliver function calls in fragments. Two keying disciplines exist:

- id-keyed (Gemini): each fragment may carry an explicit id; fragments without
  one get a synthetic id derived from their ``(name, arguments)`` signature.
- index-keyed (OpenAI Responses): fragments reference an ``output_index`` and
  the real call id may only arrive later, in which case it is back-filled.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..config.constants import TOOL_HINT_MAX_CHARS
from ..core.normalization.indexes import normalize_output_index

logger = logging.getLogger(__name__)

_TOOL_HINT_PATTERN = re.compile(r"[^A-Za-z0-9_-]+")


@dataclass
class ToolCallRecord:
    tool_use_id: str
    tool_name: str
    arguments_json: str = ""
    output_index: Optional[int] = None


def sanitize_tool_hint(tool_name: str) -> str:
    """Reduce a tool name to characters safe inside a synthetic id."""
    hint = _TOOL_HINT_PATTERN.sub("_", (tool_name or "").strip()).strip("_")
    return hint[:TOOL_HINT_MAX_CHARS] or "tool"


def normalize_arguments_json(args: Any) -> str:
    """
    Render function-call arguments as a JSON string.

    Strings are passed through (stripped); objects are serialized compactly;
    missing arguments become ``{}``.
    """
    if args is None:
        return "{}"
    if isinstance(args, str):
        return args.strip() or "{}"
    try:
        return json.dumps(args, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        return "{}"


def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


class IdKeyedToolCallAggregator:
    """Collects tool calls keyed by explicit or signature-derived id.

    Records are finalized in first-seen order.
    """

    def __init__(self):
        self._records: Dict[str, ToolCallRecord] = {}
        self._order: List[str] = []
        self._ids_by_signature: Dict[Tuple[str, str], str] = {}
        self._synthetic_ids = set()
        self._seq = 0

    def __len__(self) -> int:
        return len(self._order)

    def _synthetic_id(self, tool_name: str, arguments_json: str) -> str:
        signature = (tool_name, arguments_json)
        existing = self._ids_by_signature.get(signature)
        if existing:
            return existing
        self._seq += 1
        tool_use_id = f"tool-{sanitize_tool_hint(tool_name)}-{self._seq}"
        self._ids_by_signature[signature] = tool_use_id
        self._synthetic_ids.add(tool_use_id)
        return tool_use_id

    def _adopt_explicit_id(self, signature: Tuple[str, str], explicit_id: str) -> None:
        """Re-key a synthetic record once the provider reveals its real id."""
        previous = self._ids_by_signature.get(signature)
        if previous and previous in self._synthetic_ids and previous in self._records \
                and explicit_id not in self._records:
            record = self._records.pop(previous)
            record.tool_use_id = explicit_id
            self._records[explicit_id] = record
            self._order[self._order.index(previous)] = explicit_id
        self._ids_by_signature[signature] = explicit_id

    def add(self, tool_name: Any, arguments_json: str, tool_use_id: Any = None) -> Optional[ToolCallRecord]:
        """
        Record one function-call fragment.

        Args:
            tool_name: Function name; fragments without one are ignored
            arguments_json: Arguments as a JSON string
            tool_use_id: Explicit id from the provider, if any

        Returns:
            The record the fragment was stored under, or None when ignored
        """
        name = _clean(tool_name)
        if not name:
            return None
        arguments = arguments_json if isinstance(arguments_json, str) else ""
        explicit_id = _clean(tool_use_id)
        if explicit_id:
            self._adopt_explicit_id((name, arguments), explicit_id)
            call_id = explicit_id
        else:
            call_id = self._synthetic_id(name, arguments)

        record = self._records.get(call_id)
        if record is None:
            record = ToolCallRecord(tool_use_id=call_id, tool_name=name, arguments_json=arguments)
            self._records[call_id] = record
            self._order.append(call_id)
        else:
            # Some gateways resend the same call; the latest arguments win
            record.tool_name = name
            record.arguments_json = arguments
        return record

    def finalize(self) -> List[ToolCallRecord]:
        records = [self._records[call_id] for call_id in self._order]
        return [r for r in records if _clean(r.tool_name)]


class IndexKeyedToolCallAggregator:
    """Collects tool calls keyed by ``output_index``.

    Argument deltas append; a snapshot replaces the accumulated string
    wholesale, even if the snapshot is shorter than what was streamed.
    Records are finalized sorted by index.
    """

    def __init__(self):
        self._records: Dict[int, ToolCallRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def find_by_call_id(self, call_id: Any) -> Optional[int]:
        """Index of the record carrying ``call_id``, if any."""
        call_id = _clean(call_id)
        if not call_id:
            return None
        for key, record in self._records.items():
            if record.tool_use_id == call_id:
                return key
        return None

    def _ensure(self, index: Any) -> Optional[ToolCallRecord]:
        key = normalize_output_index(index)
        if key is None:
            logger.debug(f"Ignoring tool call fragment with invalid output_index={index!r}")
            return None
        record = self._records.get(key)
        if record is None:
            record = ToolCallRecord(tool_use_id="", tool_name="", arguments_json="", output_index=key)
            self._records[key] = record
        return record

    @staticmethod
    def _backfill(record: ToolCallRecord, call_id: Any, tool_name: Any) -> None:
        call_id = _clean(call_id)
        name = _clean(tool_name)
        if call_id:
            record.tool_use_id = call_id
        if name:
            record.tool_name = name

    def append_arguments(self, index: Any, delta: Any, call_id: Any = None,
                         tool_name: Any = None) -> Optional[ToolCallRecord]:
        delta = delta if isinstance(delta, str) else ""
        if not (delta or _clean(call_id) or _clean(tool_name)):
            return None
        record = self._ensure(index)
        if record is None:
            return None
        self._backfill(record, call_id, tool_name)
        record.arguments_json += delta
        return record

    def replace_arguments(self, index: Any, snapshot: Any, call_id: Any = None,
                          tool_name: Any = None) -> Optional[ToolCallRecord]:
        snapshot = snapshot if isinstance(snapshot, str) else ""
        if not (snapshot or _clean(call_id) or _clean(tool_name)):
            return None
        record = self._ensure(index)
        if record is None:
            return None
        self._backfill(record, call_id, tool_name)
        if snapshot:
            record.arguments_json = snapshot
        return record

    def finalize(self) -> List[ToolCallRecord]:
        records = [self._records[k] for k in sorted(self._records)]
        return [r for r in records if _clean(r.tool_name)]

    def merge_snapshot(self, record: ToolCallRecord) -> Optional[ToolCallRecord]:
        """
        Merge a call taken from a final response object.

        The call is matched by ``call_id`` first; positions in the final
        ``output`` list need not match the streamed indexes. An unmatched
        call goes to its own ``output_index``, or past the highest index
        when that slot holds a different call.
        """
        call_id = _clean(record.tool_use_id)
        key = self.find_by_call_id(call_id)
        if key is None:
            key = normalize_output_index(record.output_index)
            existing = self._records.get(key) if key is not None else None
            taken = existing is not None and existing.tool_use_id and existing.tool_use_id != call_id
            if key is None or (taken and call_id):
                key = max(self._records) + 1 if self._records else 0
        return self.replace_arguments(
            key,
            record.arguments_json,
            call_id=record.tool_use_id,
            tool_name=record.tool_name,
        )
