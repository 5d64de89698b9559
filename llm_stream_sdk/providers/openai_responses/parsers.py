from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from ...core.normalization.indexes import first_present
from ...streaming.tool_calls import ToolCallRecord

CALL_ID_KEYS = ("call_id", "callId", "callID")
OUTPUT_INDEX_KEYS = ("output_index", "outputIndex", "index")


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def response_output(response: Any) -> List[Dict[str, Any]]:
    if not isinstance(response, dict):
        return []
    output = response.get("output")
    if not isinstance(output, list):
        return []
    return [item for item in output if isinstance(item, dict)]


def extract_text_from_responses_json(response: Any) -> str:
    """Extract answer text from a Responses object.

    Tries ``output_text`` first, then joins the ``output_text`` content parts
    of every ``message`` output item. Returns empty string if nothing is found.
    """
    if not isinstance(response, dict):
        return ""
    direct = response.get("output_text")
    if isinstance(direct, str) and direct:
        return direct
    parts: List[str] = []
    for item in response_output(response):
        if item.get("type") != "message":
            continue
        content = item.get("content")
        if not isinstance(content, list):
            continue
        for part in content:
            if not isinstance(part, dict):
                continue
            if part.get("type") in ("output_text", "text") and isinstance(part.get("text"), str):
                parts.append(part["text"])
    return "".join(parts)


def extract_tool_calls_from_output(output: List[Dict[str, Any]]) -> List[ToolCallRecord]:
    """``function_call`` items as records, keyed by their position in ``output``."""
    records: List[ToolCallRecord] = []
    for index, item in enumerate(output):
        if item.get("type") != "function_call":
            continue
        call_id = first_present(item, *CALL_ID_KEYS)
        arguments = item.get("arguments")
        if isinstance(arguments, (dict, list)):
            arguments = json.dumps(arguments, ensure_ascii=False, separators=(",", ":"))
        records.append(ToolCallRecord(
            tool_use_id=_text(call_id).strip(),
            tool_name=_text(item.get("name")).strip(),
            arguments_json=_text(arguments).strip(),
            output_index=index,
        ))
    return records


def reasoning_item_summary(item: Any) -> str:
    """Join the ``summary_text`` entries of one reasoning item."""
    if not isinstance(item, dict) or item.get("type") != "reasoning":
        return ""
    summary = item.get("summary")
    if not isinstance(summary, list):
        return ""
    parts = []
    for entry in summary:
        if not isinstance(entry, dict) or entry.get("type") != "summary_text":
            continue
        text = _text(entry.get("text")).strip()
        if text:
            parts.append(text)
    return "\n".join(parts).strip()


def extract_reasoning_summary_from_output(output: List[Dict[str, Any]]) -> str:
    summaries = [reasoning_item_summary(item) for item in output]
    return "\n".join(s for s in summaries if s).strip()


def merge_reasoning_summary(buffer: str, full: str) -> str:
    """
    Fold a reasoning-summary ``done`` snapshot into the delta buffer.

    A snapshot extending the buffer replaces it; one already contained in it
    is ignored; anything else is appended on a new line.
    """
    full = (full or "").strip()
    if not full:
        return buffer
    if not buffer or full.startswith(buffer):
        return full
    if full in buffer:
        return buffer
    return f"{buffer}\n{full}"


def event_output_index(payload: Any) -> Any:
    return first_present(payload, *OUTPUT_INDEX_KEYS)


def event_call_id(payload: Any) -> str:
    return _text(first_present(payload, *CALL_ID_KEYS)).strip()


def event_item(payload: Any) -> Optional[Dict[str, Any]]:
    item = payload.get("item") if isinstance(payload, dict) else None
    return item if isinstance(item, dict) else None


def event_response(payload: Any) -> Optional[Dict[str, Any]]:
    response = payload.get("response") if isinstance(payload, dict) else None
    return response if isinstance(response, dict) else None


def output_item_types(output: List[Dict[str, Any]], limit: int = 12) -> str:
    types = [(_text(item.get("type")).strip() or "unknown") for item in output]
    return ",".join(types[:limit])
