"""
Stop-reason normalization.

Maps provider completion signals onto ``StopReason``. Each extractor also
reports whether the provider supplied a signal at all: a terminal chunk may
only carry a concrete reason when upstream actually sent one, so "absent"
must never be confused with an explicit mapping to ``other``.
"""

from dataclasses import dataclass
from typing import Any, Optional

from ...models.chunks import StopReason


@dataclass(frozen=True)
class StopReasonResult:
    stop_reason: Optional[StopReason] = None
    stop_reason_seen: bool = False


NOT_SEEN = StopReasonResult()

GEMINI_FINISH_REASONS = {
    "STOP": StopReason.STOP,
    "MAX_TOKENS": StopReason.MAX_TOKENS,
    "SAFETY": StopReason.SAFETY,
    "RECITATION": StopReason.SAFETY,
    "BLOCKLIST": StopReason.SAFETY,
    "PROHIBITED_CONTENT": StopReason.SAFETY,
    "SPII": StopReason.SAFETY,
    "IMAGE_SAFETY": StopReason.SAFETY,
}

RESPONSES_INCOMPLETE_REASONS = {
    "max_output_tokens": StopReason.MAX_TOKENS,
    "content_filter": StopReason.SAFETY,
}


def extract_gemini_stop_reason(candidate: Any) -> StopReasonResult:
    """Map ``candidates[i].finishReason``; any non-empty value counts as seen."""
    if not isinstance(candidate, dict):
        return NOT_SEEN
    raw = candidate.get("finishReason")
    if not isinstance(raw, str) or not raw.strip():
        return NOT_SEEN
    reason = GEMINI_FINISH_REASONS.get(raw.strip().upper(), StopReason.OTHER)
    return StopReasonResult(stop_reason=reason, stop_reason_seen=True)


def _has_function_call(response: dict) -> bool:
    output = response.get("output")
    if not isinstance(output, list):
        return False
    return any(isinstance(item, dict) and item.get("type") == "function_call" for item in output)


def extract_responses_stop_reason(response: Any) -> StopReasonResult:
    """
    Map a Responses object's ``status`` (+ ``incomplete_details.reason``).

    - completed -> stop, or tool_use when the output holds a function_call
    - incomplete -> max_tokens / safety / other depending on the reason
    - anything else -> not seen
    """
    if not isinstance(response, dict):
        return NOT_SEEN
    status = response.get("status")
    status = status.strip().lower() if isinstance(status, str) else ""

    if status == "completed":
        reason = StopReason.TOOL_USE if _has_function_call(response) else StopReason.STOP
        return StopReasonResult(stop_reason=reason, stop_reason_seen=True)

    if status == "incomplete":
        details = response.get("incomplete_details")
        raw = details.get("reason") if isinstance(details, dict) else None
        key = raw.strip().lower() if isinstance(raw, str) else ""
        reason = RESPONSES_INCOMPLETE_REASONS.get(key, StopReason.OTHER)
        return StopReasonResult(stop_reason=reason, stop_reason_seen=True)

    return NOT_SEEN
