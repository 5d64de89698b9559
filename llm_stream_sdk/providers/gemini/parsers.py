from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ...core.normalization.indexes import first_present
from ...streaming.text import derive_cumulative_text_delta
from ...streaming.tool_calls import normalize_arguments_json

FUNCTION_CALL_ID_KEYS = ("id", "call_id", "callId", "tool_use_id", "toolUseId")


@dataclass
class FunctionCallPart:
    tool_name: str
    arguments_json: str
    tool_use_id: str = ""


@dataclass
class CandidateContent:
    """Text, thought text and function calls carried by one candidate."""
    text: str = ""
    thought: str = ""
    function_calls: List[FunctionCallPart] = field(default_factory=list)


def first_candidate(payload: Any) -> Optional[Dict[str, Any]]:
    """Return ``candidates[0]`` of a Gemini object, if it is an object."""
    if not isinstance(payload, dict):
        return None
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    c0 = candidates[0]
    return c0 if isinstance(c0, dict) else None


def candidate_parts(candidate: Any) -> List[Dict[str, Any]]:
    if not isinstance(candidate, dict):
        return []
    content = candidate.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return []
    return [p for p in parts if isinstance(p, dict)]


def parse_candidate_content(candidate: Any) -> CandidateContent:
    """
    Split a candidate's parts into answer text, thought text and function calls.

    Parts flagged ``thought: true`` are reasoning, not answer text. Function
    calls without a name are dropped.
    """
    out = CandidateContent()
    for part in candidate_parts(candidate):
        text = part.get("text")
        if isinstance(text, str) and text:
            if part.get("thought") is True:
                out.thought += text
            else:
                out.text += text
            continue

        call = part.get("functionCall")
        if not isinstance(call, dict):
            continue
        name = call.get("name")
        name = name.strip() if isinstance(name, str) else ""
        if not name:
            continue
        raw_args = call.get("args")
        if raw_args is None:
            raw_args = call.get("arguments")
        call_id = first_present(call, *FUNCTION_CALL_ID_KEYS)
        out.function_calls.append(FunctionCallPart(
            tool_name=name,
            arguments_json=normalize_arguments_json(raw_args),
            tool_use_id=call_id.strip() if isinstance(call_id, str) else "",
        ))
    return out


def iter_gemini_objects(payload: Any) -> Iterable[Dict[str, Any]]:
    """A buffered body is either one object or an array of streamed objects."""
    if isinstance(payload, dict):
        yield payload
    elif isinstance(payload, list):
        for item in payload:
            if isinstance(item, dict):
                yield item


def extract_text_from_gemini_json(payload: Any) -> str:
    """Answer text of ``candidates[0]``, reconciled across all objects."""
    full_text = ""
    for obj in iter_gemini_objects(payload):
        chunk = parse_candidate_content(first_candidate(obj)).text
        full_text = derive_cumulative_text_delta(full_text, chunk).full_text
    return full_text
