"""
Provider Drivers Layer

This layer wires each provider family's wire shapes (Gemini candidate
objects, OpenAI Responses events) into the shared streaming components.
Drivers live in their own subpackages; this package only exports the error
base so the streaming layer can import it without pulling in the drivers.
"""

from .base import ProviderError
from .errors import (
    EmptyResultError,
    RequestShapeRejected,
    TransportError,
    UpstreamPayloadError,
    UpstreamShapeError,
)

__all__ = [
    "ProviderError",
    "TransportError",
    "UpstreamShapeError",
    "UpstreamPayloadError",
    "EmptyResultError",
    "RequestShapeRejected",
]
