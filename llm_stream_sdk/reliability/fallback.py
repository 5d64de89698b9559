from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..config.constants import (
    ERROR_PREVIEW_CHARS,
    MINIMAL_DEFAULTS_LABEL_SUFFIX,
    MINIMAL_GENERATION_CONFIG_KEYS,
    MINIMAL_RETRY_DEFAULT_KEYS,
)
from ..models.streaming import FetchAttempt, RequestSpec
from ..observability.logging import ProviderLogger
from ..providers.base import ProviderError
from ..providers.errors import ErrorMapper, RequestShapeRejected, parse_retry_after


def build_minimal_retry_request_defaults(request_defaults: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Reduce request defaults to the keys every upstream accepts.

    Only output token limits survive; sampling knobs, reasoning settings and
    vendor extensions are dropped.
    """
    if not isinstance(request_defaults, dict):
        return {}
    minimal: Dict[str, Any] = {}
    for key in MINIMAL_RETRY_DEFAULT_KEYS:
        if key not in request_defaults:
            continue
        value = request_defaults[key]
        if key == "generationConfig":
            if isinstance(value, dict):
                kept = {k: value[k] for k in MINIMAL_GENERATION_CONFIG_KEYS if k in value}
                if kept:
                    minimal[key] = kept
            continue
        minimal[key] = value
    return minimal


def build_fallback_attempts(request: RequestSpec) -> List[FetchAttempt]:
    """The fixed attempt list: as given, then with minimal request defaults."""
    return [
        FetchAttempt(
            label_suffix="",
            url=request.url,
            headers=dict(request.headers),
            body=request.build_body(),
        ),
        FetchAttempt(
            label_suffix=MINIMAL_DEFAULTS_LABEL_SUFFIX,
            url=request.url,
            headers=dict(request.headers),
            body=request.build_body(build_minimal_retry_request_defaults(request.request_defaults)),
        ),
    ]


async def read_error_detail(response: httpx.Response, max_chars: int = ERROR_PREVIEW_CHARS) -> str:
    """Read (and truncate) a response body for error messages."""
    try:
        raw = await response.aread()
    except httpx.HTTPError:
        return "<unreadable body>"
    text = raw.decode("utf-8", errors="replace").strip()
    if len(text) > max_chars:
        text = text[:max_chars] + "..."
    return text or "<empty body>"


async def _send_once(
    client: httpx.AsyncClient,
    attempt: FetchAttempt,
    label: str,
    provider: str,
    timeout: Optional[httpx.Timeout],
) -> httpx.Response:
    request = client.build_request(
        "POST",
        attempt.url,
        headers=attempt.headers,
        json=attempt.body,
        timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
    )
    try:
        response = await client.send(request, stream=True)
    except httpx.TransportError as e:
        raise ErrorMapper.map_httpx_error(e, provider, label) from e

    if response.is_success:
        return response

    try:
        detail = await read_error_detail(response)
    finally:
        await response.aclose()
    raise ErrorMapper.map_status_error(
        response.status_code,
        detail,
        provider,
        label,
        retry_after=parse_retry_after(response.headers.get("retry-after")),
    )


async def fetch_with_fallbacks(
    client: httpx.AsyncClient,
    attempts: Sequence[FetchAttempt],
    label: str,
    provider: str,
    timeout: Optional[httpx.Timeout] = None,
    logger: Optional[ProviderLogger] = None,
) -> httpx.Response:
    """
    Send each attempt in order until one is accepted.

    Only a request-shape rejection (400/422) advances to the next attempt;
    any other failure, or running out of attempts, propagates immediately.
    Transport failures are never retried here.

    Args:
        client: HTTP client owning pooling/TLS
        attempts: Ordered, fixed attempt list
        label: Base diagnostic label; each attempt appends its suffix
        provider: Provider name for errors and logs
        timeout: Per-request timeout
        logger: Structured logger for fallback decisions

    Returns:
        The open (streamed) 2xx response; the caller must close it
    """
    if not attempts:
        raise ProviderError(message=f"{label} has no request attempts", provider=provider)

    logger = logger or ProviderLogger(provider)
    for i, attempt in enumerate(attempts):
        attempt_label = f"{label}{attempt.label_suffix}"
        try:
            return await _send_once(client, attempt, attempt_label, provider, timeout)
        except RequestShapeRejected as e:
            has_next = i + 1 < len(attempts)
            if not has_next:
                raise
            logger.debug(
                "fallback: retry with reduced request",
                label=attempt_label,
                status=e.status_code,
            )

    # Unreachable: the last attempt either returns or raises
    raise ProviderError(message=f"{label} failed", provider=provider)
