"""
Error taxonomy and mapping utilities for the streaming engine.

Every failure is a hard failure delivered to the caller; nothing is folded
into an empty successful result.
"""

import math
from typing import Any, Optional

import httpx

from ..config.constants import INVALID_REQUEST_FALLBACK_STATUSES
from .base import ProviderError


def is_request_shape_rejection(status: Any) -> bool:
    """Whether an upstream status means "request shape rejected" (400/422)."""
    if status is None or isinstance(status, bool):
        return False
    try:
        return int(status) in INVALID_REQUEST_FALLBACK_STATUSES
    except (TypeError, ValueError):
        return False


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Seconds from a ``Retry-After`` header; HTTP-date values are ignored."""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return seconds if math.isfinite(seconds) and seconds >= 0 else None


class TransportError(ProviderError):
    """Network failure, timeout or abort. Never retried by this layer."""


class UpstreamShapeError(ProviderError):
    """The response content-type does not match the expected stream/JSON shape."""

    def __init__(
        self,
        message: str,
        provider: str,
        content_type: str = "",
        status_code: Optional[int] = None
    ):
        super().__init__(message, provider, status_code=status_code)
        self.content_type = content_type


class UpstreamPayloadError(ProviderError):
    """The payload itself encodes an error (error field or terminal failure event)."""


class EmptyResultError(ProviderError):
    """The transport completed cleanly but nothing interpretable was produced."""

    def __init__(self, message: str, provider: str, data_events: int = 0, parsed_chunks: int = 0):
        super().__init__(message, provider)
        self.data_events = data_events
        self.parsed_chunks = parsed_chunks


class RequestShapeRejected(ProviderError):
    """Upstream rejected the request body (400/422); eligible for the reduced-body fallback."""


def extract_error_message(payload: Any) -> str:
    """
    Pull a human readable message out of an error payload.

    Looks at ``error`` (string or ``{message}``), ``message`` and
    ``response.error.message``, in that order.
    """
    if not isinstance(payload, dict):
        return ""
    error = payload.get("error")
    if isinstance(error, str) and error.strip():
        return error.strip()
    if isinstance(error, dict):
        for key in ("message", "code", "type", "status"):
            value = error.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    message = payload.get("message")
    if isinstance(message, str) and message.strip():
        return message.strip()
    response = payload.get("response")
    if isinstance(response, dict) and response is not payload:
        return extract_error_message(response)
    return ""


def payload_has_error(payload: Any, include_message: bool = True) -> bool:
    """Whether a JSON payload carries an ``error`` (or bare ``message``) field."""
    if not isinstance(payload, dict):
        return False
    if payload.get("error"):
        return True
    return include_message and bool(payload.get("message"))


class ErrorMapper:
    """Maps transport-level errors to the ProviderError taxonomy."""

    @staticmethod
    def map_httpx_error(error: Exception, provider: str, label: str = "") -> ProviderError:
        """
        Map an httpx exception to TransportError.

        Args:
            error: The httpx exception
            provider: Provider name
            label: Request label for the message

        Returns:
            TransportError with the original error attached
        """
        prefix = f"{label} " if label else ""
        if isinstance(error, httpx.TimeoutException):
            message = f"{prefix}request timed out: {error}"
        elif isinstance(error, httpx.ConnectError):
            message = f"{prefix}connection failed: {error}"
        else:
            message = f"{prefix}transport error: {type(error).__name__}: {error}"

        mapped = TransportError(message=message.strip(), provider=provider)
        mapped.original_error = error
        return mapped

    @staticmethod
    def map_status_error(
        status_code: int,
        detail: str,
        provider: str,
        label: str = "",
        retry_after: Optional[float] = None,
    ) -> ProviderError:
        """
        Map a non-2xx upstream status to a ProviderError.

        400 and 422 become RequestShapeRejected; every other status is a
        plain, non-retryable ProviderError carrying any ``Retry-After`` delay.
        """
        prefix = f"{label} " if label else ""
        message = f"{prefix}HTTP {status_code}: {detail}".strip()
        if is_request_shape_rejection(status_code):
            return RequestShapeRejected(message=message, provider=provider, status_code=status_code)
        return ProviderError(message=message, provider=provider, status_code=status_code, retry_after=retry_after)
