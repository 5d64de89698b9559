"""
Server-Sent Events frame iterator.

Decodes a line stream into ``Frame`` objects: frames are delimited by blank
lines, ``event:`` sets the logical type and ``data:`` lines (joined with
newlines) hold a JSON payload or the end-of-stream sentinel.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterable, AsyncIterator, List, Optional

import httpx

from ..config.constants import DEFAULT_DONE_DATA
from ..providers.errors import ErrorMapper

logger = logging.getLogger(__name__)


@dataclass
class Frame:
    """One decoded SSE unit. ``json`` is None when the payload did not parse."""
    event_type: Optional[str]
    json: Any
    data: str = ""


@dataclass
class SseStats:
    """Diagnostic counters for one stream.

    Attributes:
        data_events: Frames that carried a ``data:`` payload
        parsed_chunks: Frames whose payload parsed as JSON
        done_seen: Whether the sentinel payload was observed
    """
    data_events: int = 0
    parsed_chunks: int = 0
    done_seen: bool = False

    def to_dict(self) -> dict:
        return {
            "data_events": self.data_events,
            "parsed_chunks": self.parsed_chunks,
            "done_seen": self.done_seen,
        }


class SseJsonIterator:
    """Lazy, forward-only iterator of JSON frames over an SSE line stream.

    ``events()`` may be consumed once. A transport failure while pulling more
    lines is fatal and propagates immediately as ``TransportError``.
    """

    def __init__(
        self,
        lines: AsyncIterable[str],
        done_data: Optional[str] = DEFAULT_DONE_DATA,
        provider: str = "sse",
        label: str = "SSE",
    ):
        self._lines = lines
        self.done_data = done_data
        self.provider = provider
        self.label = label
        self.stats = SseStats()
        self._started = False

    @classmethod
    def from_response(
        cls,
        response: httpx.Response,
        done_data: Optional[str] = DEFAULT_DONE_DATA,
        provider: str = "sse",
        label: str = "SSE",
    ) -> "SseJsonIterator":
        return cls(response.aiter_lines(), done_data=done_data, provider=provider, label=label)

    async def events(self) -> AsyncIterator[Frame]:
        if self._started:
            raise RuntimeError(f"{self.label} event stream can only be consumed once")
        self._started = True

        event_type: Optional[str] = None
        data_lines: List[str] = []

        async for line in self._pull_lines():
            if line == "":
                if data_lines:
                    frame = self._decode(event_type, data_lines)
                    if frame is _DONE:
                        return
                    if frame is not None:
                        yield frame
                event_type = None
                data_lines = []
                continue

            if line.startswith(":"):
                continue

            field_name, _, value = line.partition(":")
            if value.startswith(" "):
                value = value[1:]

            if field_name == "event":
                event_type = value.strip() or None
            elif field_name == "data":
                data_lines.append(value)

        # Flush a final frame that was not followed by a blank line
        if data_lines:
            frame = self._decode(event_type, data_lines)
            if frame is not None and frame is not _DONE:
                yield frame

    async def _pull_lines(self) -> AsyncIterator[str]:
        iterator = self._lines.__aiter__()
        while True:
            try:
                line = await iterator.__anext__()
            except StopAsyncIteration:
                return
            except (httpx.TransportError, httpx.StreamError) as e:
                raise ErrorMapper.map_httpx_error(e, self.provider, self.label) from e
            yield line.rstrip("\r\n")

    def _decode(self, event_type: Optional[str], data_lines: List[str]) -> Any:
        data = "\n".join(data_lines)
        self.stats.data_events += 1

        if self.done_data and data.strip() == self.done_data:
            self.stats.done_seen = True
            return _DONE

        try:
            payload = json.loads(data)
        except ValueError:
            logger.debug(f"{self.label}: skipping unparseable SSE frame ({len(data)} chars)")
            return None

        self.stats.parsed_chunks += 1
        return Frame(event_type=event_type, json=payload, data=data)


_DONE = object()
