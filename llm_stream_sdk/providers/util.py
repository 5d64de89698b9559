"""Helpers shared by the provider drivers."""

import json
from typing import Any, Callable, Dict, Mapping, Optional

import httpx

from ..models.chunks import ToolMeta
from ..reliability.fallback import read_error_detail
from .errors import ErrorMapper, UpstreamShapeError


def make_tool_meta_getter(tool_meta_by_name: Optional[Mapping[str, Any]]) -> Callable[[str], ToolMeta]:
    """Lookup function that never fails: unknown tools get an empty ToolMeta."""
    table = tool_meta_by_name if isinstance(tool_meta_by_name, Mapping) else {}

    def get(tool_name: str) -> ToolMeta:
        meta = table.get(tool_name)
        if isinstance(meta, ToolMeta):
            return meta
        if isinstance(meta, dict):
            return ToolMeta(**meta)
        return ToolMeta()

    return get


def response_content_type(response: httpx.Response) -> str:
    return (response.headers.get("content-type") or "").strip().lower()


def is_json_response(response: httpx.Response) -> bool:
    return "json" in response_content_type(response)


async def assert_sse_response(
    response: httpx.Response,
    label: str,
    provider: str,
    expected_hint: str = "",
) -> None:
    """
    Fail unless the response is ``text/event-stream``.

    Raises:
        UpstreamShapeError: Naming the observed content-type, the hint and a
            preview of the body
    """
    content_type = response_content_type(response)
    if "text/event-stream" in content_type:
        return
    detail = await read_error_detail(response)
    hint = f"; {expected_hint.strip()}" if expected_hint and expected_hint.strip() else ""
    raise UpstreamShapeError(
        message=(
            f"{label or 'SSE'} response is not SSE "
            f"(content-type={content_type or 'unknown'}){hint}; detail: {detail}"
        ),
        provider=provider,
        content_type=content_type,
        status_code=response.status_code,
    )


async def read_json_body(response: httpx.Response, provider: str = "", label: str = "") -> Any:
    """Parse a buffered JSON body; an unparseable body yields None."""
    try:
        raw = await response.aread()
    except (httpx.TransportError, httpx.StreamError) as e:
        raise ErrorMapper.map_httpx_error(e, provider, label) from e
    try:
        return json.loads(raw.decode("utf-8", errors="replace"))
    except ValueError:
        return None


def apply_parallel_tool_calls_policy(
    request_defaults: Optional[Dict[str, Any]],
    has_tools: bool = False,
    support_parallel_tool_use: bool = False,
) -> Dict[str, Any]:
    """
    Normalize the ``parallel_tool_calls`` request default.

    - camelCase ``parallelToolCalls`` is renamed to snake_case when the
      snake_case key is absent
    - when tools are offered but the caller cannot run them in parallel,
      ``parallel_tool_calls=False`` is injected unless already set
    """
    defaults = request_defaults if isinstance(request_defaults, dict) else {}
    has_snake = "parallel_tool_calls" in defaults
    has_camel = "parallelToolCalls" in defaults

    if not has_snake and has_camel:
        out = {k: v for k, v in defaults.items() if k != "parallelToolCalls"}
        out["parallel_tool_calls"] = defaults["parallelToolCalls"]
        return out

    if not has_tools or support_parallel_tool_use:
        return defaults
    if has_snake or has_camel:
        return defaults
    return {**defaults, "parallel_tool_calls": False}
