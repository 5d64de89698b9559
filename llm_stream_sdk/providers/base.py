"""
Base Provider Error

All failures raised by the streaming engine derive from ``ProviderError`` so
callers can catch one type and still inspect provider, status and retry hints.
"""

from typing import Optional


class ProviderError(Exception):
    """
    Base exception for provider-related errors.

    This should be raised for:
    - API transport errors
    - Upstream responses that cannot be interpreted
    - Upstream payloads that encode an error

    Attributes:
        message: Error message
        provider: Provider name
        status_code: HTTP status code if applicable
        retry_after: Seconds to wait before retry if applicable
        is_retryable: Whether this error should be retried
        original_error: The original exception if wrapped
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.retry_after = retry_after
        self.is_retryable = False  # Default, should be set by error mapper
        self.original_error = None  # Will be set by error mapper if wrapping
