"""
Usage normalization module.

This module reads token figures out of the differently shaped usage objects
sent by each provider family. Every figure is optional: a provider that does
not report a value leaves it as None rather than zero, so the caller can tell
"not reported" from "reported as zero".
"""

import math
from typing import Any, Dict, Optional

from ...models.chunks import TokenUsage


def normalize_usage_int(value: Any) -> Optional[int]:
    """
    Coerce a reported token count into a non-negative integer.

    Returns:
        The floored count, or None for missing, negative or non-finite values
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return int(math.floor(number))


def extract_gemini_usage(payload: Any) -> TokenUsage:
    """
    Extract usage from a Gemini candidate-style object.

    Gemini reports ``usageMetadata`` with camelCase counters:
    promptTokenCount, candidatesTokenCount and cachedContentTokenCount.
    """
    meta = payload.get("usageMetadata") if isinstance(payload, dict) else None
    if not isinstance(meta, dict):
        return TokenUsage()
    return TokenUsage(
        input_tokens=normalize_usage_int(meta.get("promptTokenCount")),
        output_tokens=normalize_usage_int(meta.get("candidatesTokenCount")),
        cached_input_tokens=normalize_usage_int(meta.get("cachedContentTokenCount")),
    )


def extract_responses_usage(usage_data: Any) -> TokenUsage:
    """
    Extract usage from an OpenAI Responses ``usage`` object.

    Args:
        usage_data: The ``usage`` dict of a response object (may be None)

    Returns:
        TokenUsage with input/output tokens and cached tokens from
        ``input_tokens_details.cached_tokens``
    """
    if not isinstance(usage_data, dict):
        return TokenUsage()
    details = usage_data.get("input_tokens_details")
    cached = details.get("cached_tokens") if isinstance(details, dict) else None
    return TokenUsage(
        input_tokens=normalize_usage_int(usage_data.get("input_tokens")),
        output_tokens=normalize_usage_int(usage_data.get("output_tokens")),
        cached_input_tokens=normalize_usage_int(cached),
    )


def usage_to_log_fields(usage: TokenUsage) -> Dict[str, Any]:
    """Flatten usage for structured log lines."""
    return {
        "input_tokens": usage.input_tokens,
        "output_tokens": usage.output_tokens,
        "cached_input_tokens": usage.cached_input_tokens,
    }
