"""Canonical chat chunk protocol emitted by every provider driver."""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class StopReason(str, Enum):
    """Canonical reasons for why generation ended."""
    STOP = "stop"
    MAX_TOKENS = "max_tokens"
    TOOL_USE = "tool_use"
    SAFETY = "safety"
    OTHER = "other"


class TokenUsage(BaseModel):
    """Token figures reported by the provider; unknown figures stay None."""
    input_tokens: Optional[int] = Field(None, ge=0)
    output_tokens: Optional[int] = Field(None, ge=0)
    cached_input_tokens: Optional[int] = Field(None, ge=0)

    def has_any(self) -> bool:
        return any(
            v is not None
            for v in (self.input_tokens, self.output_tokens, self.cached_input_tokens)
        )


class ToolMeta(BaseModel):
    """Where a tool lives, for tools proxied from a remote (MCP) server."""
    server_name: Optional[str] = None
    remote_tool_name: Optional[str] = None


class TextNode(BaseModel):
    type: Literal["text"] = "text"
    id: int
    content: str


class ThinkingNode(BaseModel):
    type: Literal["thinking"] = "thinking"
    id: int
    summary: str


class ToolUseStartNode(BaseModel):
    type: Literal["tool_use_start"] = "tool_use_start"
    id: int
    tool_use_id: str
    tool_name: str
    server_name: Optional[str] = None
    remote_tool_name: Optional[str] = None


class ToolUseNode(BaseModel):
    type: Literal["tool_use"] = "tool_use"
    id: int
    tool_use_id: str
    tool_name: str
    arguments_json: str
    server_name: Optional[str] = None
    remote_tool_name: Optional[str] = None


ResponseNode = Annotated[
    Union[TextNode, ThinkingNode, ToolUseStartNode, ToolUseNode],
    Field(discriminator="type"),
]


class CanonicalChunk(BaseModel):
    """
    One unit of the canonical output protocol.

    Attributes:
        text: Incremental text carried by this chunk (may be empty)
        nodes: Ordered structured nodes
        stop_reason: Only set on the final chunk, when a reason is known
        usage: Only set on the usage chunk
        saw_tool_use: Only set on the final chunk, true when the call
            produced tool calls whatever the upstream stop reason says
    """
    text: str = ""
    nodes: List[ResponseNode] = Field(default_factory=list)
    stop_reason: Optional[StopReason] = None
    usage: Optional[TokenUsage] = None
    saw_tool_use: bool = False

    def tool_use_nodes(self) -> List[ToolUseNode]:
        return [n for n in self.nodes if isinstance(n, ToolUseNode)]
