"""Event kinds of the OpenAI Responses streaming protocol.

Frames are dispatched on ``ResponsesEventType``; anything not listed here maps
to ``UNKNOWN`` and is ignored by the driver.
"""

from enum import Enum
from typing import Any, Optional


class ResponsesEventType(str, Enum):
    OUTPUT_ITEM_ADDED = "response.output_item.added"
    OUTPUT_ITEM_DONE = "response.output_item.done"
    FUNCTION_CALL_ARGUMENTS_DELTA = "response.function_call_arguments.delta"
    FUNCTION_CALL_ARGUMENTS_DONE = "response.function_call_arguments.done"
    OUTPUT_TEXT_DELTA = "response.output_text.delta"
    OUTPUT_TEXT_DONE = "response.output_text.done"
    REASONING_SUMMARY_TEXT_DELTA = "response.reasoning_summary_text.delta"
    REASONING_SUMMARY_TEXT_DONE = "response.reasoning_summary_text.done"
    REASONING_TEXT_DELTA = "response.reasoning_text.delta"
    COMPLETED = "response.completed"
    INCOMPLETE = "response.incomplete"
    FAILED = "response.failed"
    RESPONSE_ERROR = "response.error"
    ERROR = "error"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, event_type: Optional[str], payload: Any = None) -> "ResponsesEventType":
        """Resolve the event kind from the SSE ``event:`` line, else the payload ``type``."""
        name = event_type
        if not name and isinstance(payload, dict) and isinstance(payload.get("type"), str):
            name = payload["type"]
        if not name:
            return cls.UNKNOWN
        try:
            return cls(name.strip())
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_terminal_failure(self) -> bool:
        return self in (
            ResponsesEventType.FAILED,
            ResponsesEventType.RESPONSE_ERROR,
            ResponsesEventType.ERROR,
        )
