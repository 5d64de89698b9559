"""Text delta reconciliation.

Some gateways resend the full text-so-far instead of a true delta, and some
skip deltas and only send a final snapshot. These helpers turn either shape
into the portion of text not yet emitted.
"""

from dataclasses import dataclass
from typing import Any, Dict

from ..core.normalization.indexes import normalize_output_index


@dataclass(frozen=True)
class TextDelta:
    delta: str
    full_text: str


def derive_cumulative_text_delta(previous_full_text: str, new_chunk: str) -> TextDelta:
    """
    Reconcile a text chunk against the text emitted so far.

    A chunk that starts with ``previous_full_text`` is a cumulative resend and
    only its suffix is new; anything else is a plain delta and is appended.
    """
    previous = previous_full_text or ""
    if not new_chunk:
        return TextDelta(delta="", full_text=previous)
    if new_chunk.startswith(previous):
        return TextDelta(delta=new_chunk[len(previous):], full_text=new_chunk)
    return TextDelta(delta=new_chunk, full_text=previous + new_chunk)


class OutputTextTracker:
    """Tracks text already pushed per output index.

    Used by providers that key deltas by ``output_index`` and finalize each
    output with a full-text snapshot.
    """

    def __init__(self):
        self._pushed: Dict[int, str] = {}

    @staticmethod
    def _key(index: Any) -> int:
        key = normalize_output_index(index)
        return 0 if key is None else key

    def push_delta(self, index: Any, text: str) -> None:
        if not text:
            return
        key = self._key(index)
        self._pushed[key] = self._pushed.get(key, "") + text

    def pushed_text(self, index: Any) -> str:
        return self._pushed.get(self._key(index), "")

    def apply_final_text(self, index: Any, full_text: str) -> str:
        """
        Return the part of ``full_text`` not yet pushed for ``index``.

        If the snapshot does not extend what was pushed, the whole snapshot is
        returned (gateways that only send a final snapshot). The buffer then
        becomes the snapshot, so a repeat call returns "".
        """
        if not full_text:
            return ""
        key = self._key(index)
        pushed = self._pushed.get(key, "")
        if full_text.startswith(pushed):
            rest = full_text[len(pushed):]
        else:
            rest = full_text
        if rest:
            self._pushed[key] = full_text
        return rest

    def apply_final_output_text(self, full_text: str) -> str:
        """
        Reconcile a response-level ``output_text`` snapshot.

        That snapshot concatenates every output item's text, so it is compared
        against all buffers joined in index order. Any rest is booked against
        the highest index seen; a mismatching snapshot replaces all buffers.
        """
        if not full_text:
            return ""
        pushed = "".join(self._pushed[k] for k in sorted(self._pushed))
        if full_text.startswith(pushed):
            rest = full_text[len(pushed):]
            if rest:
                key = max(self._pushed) if self._pushed else 0
                self._pushed[key] = self._pushed.get(key, "") + rest
            return rest
        if pushed.startswith(full_text):
            return ""
        self._pushed = {min(self._pushed): full_text}
        return full_text
