"""Reliability layer: the bounded request-shape fallback.

This layer handles:
- Classifying 400/422 as "request shape rejected"
- Building the fixed attempt list (as given, then minimal defaults)
- Sending attempts in order until one is accepted
"""

from ..providers.errors import is_request_shape_rejection
from .fallback import (
    build_fallback_attempts,
    build_minimal_retry_request_defaults,
    fetch_with_fallbacks,
)

__all__ = [
    "build_fallback_attempts",
    "build_minimal_retry_request_defaults",
    "fetch_with_fallbacks",
    "is_request_shape_rejection",
]
