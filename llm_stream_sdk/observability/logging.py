"""
Structured logging utility for provider drivers.

This module provides a consistent logging interface for the streaming engine,
ensuring structured logging with standard fields like provider, label and
request_id.
"""

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Optional

from ..core.normalization.usage import usage_to_log_fields
from ..models.chunks import TokenUsage


class ProviderLogger:
    """Structured logger for provider drivers."""

    def __init__(self, provider_name: str):
        """
        Initialize logger for a specific provider.

        Args:
            provider_name: Name of the provider (e.g., "gemini", "openai_responses")
        """
        self.provider = provider_name
        self.logger = logging.getLogger(f"llm_stream_sdk.providers.{provider_name}")

    def _format_message(self, message: str, **kwargs) -> str:
        """Format message with structured fields."""
        fields = [f"provider={self.provider}"]

        for key, value in kwargs.items():
            if value is not None:
                fields.append(f"{key}={value}")

        return f"[{' '.join(fields)}] {message}"

    def debug(self, message: str, label: Optional[str] = None,
              request_id: Optional[str] = None, **kwargs):
        """Log debug message with structured fields."""
        self.logger.debug(
            self._format_message(message, label=label, request_id=request_id, **kwargs)
        )

    def info(self, message: str, label: Optional[str] = None,
             request_id: Optional[str] = None, **kwargs):
        """Log info message with structured fields."""
        self.logger.info(
            self._format_message(message, label=label, request_id=request_id, **kwargs)
        )

    def warning(self, message: str, label: Optional[str] = None,
                request_id: Optional[str] = None, **kwargs):
        """Log warning message with structured fields."""
        self.logger.warning(
            self._format_message(message, label=label, request_id=request_id, **kwargs)
        )

    def error(self, message: str, label: Optional[str] = None,
              request_id: Optional[str] = None, error: Optional[Exception] = None, **kwargs):
        """Log error message with structured fields."""
        if error:
            kwargs['error_type'] = type(error).__name__
            kwargs['error_msg'] = str(error)

        self.logger.error(
            self._format_message(message, label=label, request_id=request_id, **kwargs)
        )

    @contextmanager
    def track_request(self, label: str, request_id: Optional[str] = None):
        """
        Context manager to time a streaming call and log its outcome.

        Args:
            label: Diagnostic label of the call (e.g., "Gemini(chat-stream)")
            request_id: Optional request ID (generated if not provided)

        Yields:
            Dict with request metadata including request_id
        """
        if request_id is None:
            request_id = str(uuid.uuid4())[:8]

        start_time = time.time()
        self.debug("Starting request", label=label, request_id=request_id)

        metadata: Dict[str, Any] = {
            'request_id': request_id,
            'label': label,
            'start_time': start_time
        }

        try:
            yield metadata

            duration = time.time() - start_time
            self.info(
                "Completed request",
                label=label,
                request_id=request_id,
                duration_ms=int(duration * 1000)
            )

        except Exception as e:
            duration = time.time() - start_time
            self.error(
                "Failed request",
                label=label,
                request_id=request_id,
                duration_ms=int(duration * 1000),
                error=e
            )
            raise

    def log_usage(self, usage: TokenUsage, label: str, request_id: Optional[str] = None):
        """Log token usage information."""
        self.info(
            "Token usage",
            label=label,
            request_id=request_id,
            **usage_to_log_fields(usage)
        )

    def log_stream_stats(self, label: str, data_events: int, parsed_chunks: int,
                         emitted_chunks: int, done_seen: bool,
                         request_id: Optional[str] = None):
        """Log frame/parse counters collected while draining a stream."""
        self.debug(
            "Stream drained",
            label=label,
            request_id=request_id,
            data_events=data_events,
            parsed_chunks=parsed_chunks,
            emitted_chunks=emitted_chunks,
            done_seen=done_seen
        )
