"""Normalization layer for standardizing provider payloads.

This layer handles:
- Usage data normalization (latest non-null figures)
- Stop-reason mapping onto the canonical enumeration
- Validation of positional keys from untrusted payloads
"""

from .indexes import first_present, normalize_output_index
from .stop_reason import (
    StopReasonResult,
    extract_gemini_stop_reason,
    extract_responses_stop_reason,
)
from .usage import extract_gemini_usage, extract_responses_usage, normalize_usage_int

__all__ = [
    "first_present",
    "normalize_output_index",
    "StopReasonResult",
    "extract_gemini_stop_reason",
    "extract_responses_stop_reason",
    "extract_gemini_usage",
    "extract_responses_usage",
    "normalize_usage_int",
]
