"""Observability layer: structured logging for the provider drivers."""

from .logging import ProviderLogger

__all__ = ["ProviderLogger"]
