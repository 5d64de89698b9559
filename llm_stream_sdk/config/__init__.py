"""Configuration constants for the streaming engine."""

from .constants import (
    DEFAULT_DONE_DATA,
    INVALID_REQUEST_FALLBACK_STATUSES,
    MINIMAL_DEFAULTS_LABEL_SUFFIX,
)

__all__ = [
    "DEFAULT_DONE_DATA",
    "INVALID_REQUEST_FALLBACK_STATUSES",
    "MINIMAL_DEFAULTS_LABEL_SUFFIX",
]
