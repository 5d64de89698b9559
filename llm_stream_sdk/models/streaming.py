"""
Streaming configuration models.

This module provides the per-call options consumed by the provider drivers
and the request shapes handed to the fetch fallback policy.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import httpx
from dotenv import load_dotenv

from ..config.constants import (
    CONNECT_TIMEOUT_ENV_VAR,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_DONE_DATA,
    DEFAULT_READ_TIMEOUT,
    DONE_DATA_ENV_VAR,
    READ_TIMEOUT_ENV_VAR,
)
from .chunks import ToolMeta


@dataclass
class StreamOptions:
    """
    Configuration for one streaming call.

    The tool metadata table is only read, so a single instance may be
    shared across concurrent calls.
    """

    tool_meta_by_name: Mapping[str, ToolMeta] = field(default_factory=dict)
    """Tool name -> remote server metadata attached to tool nodes."""

    support_tool_use_start: bool = False
    """Emit a tool-use-start chunk before each tool-use chunk."""

    support_parallel_tool_use: bool = False
    """Whether the caller can execute several tool calls from one turn."""

    node_id_start: int = 0
    """Node ids continue from here (conversation continuity)."""

    done_data: Optional[str] = DEFAULT_DONE_DATA
    """SSE payload that ends the stream; None or "" disables the sentinel."""

    connect_timeout: Optional[float] = None
    read_timeout: Optional[float] = None
    """Per-request timeouts; when both are unset the client's own timeout applies."""

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.tool_meta_by_name is None:
            self.tool_meta_by_name = {}
        try:
            start = int(self.node_id_start)
        except (TypeError, ValueError):
            start = 0
        self.node_id_start = start if start >= 0 else 0
        if not self.done_data:
            self.done_data = None
        if self.connect_timeout is not None and self.connect_timeout <= 0:
            self.connect_timeout = None
        if self.read_timeout is not None and self.read_timeout <= 0:
            self.read_timeout = None

    @property
    def timeout(self) -> Optional[httpx.Timeout]:
        """Per-request timeout override, or None to use the client default."""
        if self.connect_timeout is None and self.read_timeout is None:
            return None
        return self.client_timeout

    @property
    def client_timeout(self) -> httpx.Timeout:
        """Timeout for a client created by an adapter."""
        return httpx.Timeout(
            self.read_timeout or DEFAULT_READ_TIMEOUT,
            connect=self.connect_timeout or DEFAULT_CONNECT_TIMEOUT,
        )

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "StreamOptions":
        """Create StreamOptions from dictionary.

        Args:
            config: Configuration dictionary

        Returns:
            StreamOptions instance
        """
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered_config = {k: v for k, v in config.items() if k in known_fields}
        meta = filtered_config.get("tool_meta_by_name")
        if meta:
            filtered_config["tool_meta_by_name"] = {
                name: m if isinstance(m, ToolMeta) else ToolMeta(**m)
                for name, m in meta.items()
            }
        return cls(**filtered_config)

    @classmethod
    def from_env(cls, **overrides: Any) -> "StreamOptions":
        """Build options from environment variables (and a .env file)."""
        load_dotenv()
        config: Dict[str, Any] = {
            "done_data": os.getenv(DONE_DATA_ENV_VAR, DEFAULT_DONE_DATA),
        }
        for key, env_var in (("connect_timeout", CONNECT_TIMEOUT_ENV_VAR), ("read_timeout", READ_TIMEOUT_ENV_VAR)):
            value = os.getenv(env_var)
            if value:
                config[key] = float(value)
        config.update(overrides)
        return cls.from_dict(config)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tool_meta_by_name": sorted(self.tool_meta_by_name.keys()),
            "support_tool_use_start": self.support_tool_use_start,
            "support_parallel_tool_use": self.support_parallel_tool_use,
            "node_id_start": self.node_id_start,
            "done_data": self.done_data,
            "connect_timeout": self.connect_timeout,
            "read_timeout": self.read_timeout,
        }


@dataclass
class RequestSpec:
    """
    A provider request as built by the caller.

    ``body`` holds the core fields (model, input, tools, ...);
    ``request_defaults`` are the user-tunable extras merged underneath it,
    and are what the fallback attempt reduces.
    """

    url: str
    body: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)
    request_defaults: Dict[str, Any] = field(default_factory=dict)

    def build_body(self, request_defaults: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        defaults = self.request_defaults if request_defaults is None else request_defaults
        return {**(defaults or {}), **self.body}


@dataclass
class FetchAttempt:
    """One labeled HTTP attempt in the fallback chain."""

    label_suffix: str
    url: str
    body: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)
