"""
chainhttp.tier1_runtime.buffer
───────────────────────────────
Growable character buffer used to materialize a response body as text
without knowing its length up front.

Storage is a bytearray holding UTF-32 code units, so appends are a single
slice copy and capacity is tracked in characters. Capacity doubles (as many
times as needed) whenever an append would overflow it.

A buffer is owned by one call context. It is carried on the response
handle and reset before each use; it is never shared between concurrently
running exchanges.
"""
from __future__ import annotations

from chainhttp.tier0_core.config import get_config

_UNIT = 4
_CODEC = "utf-32-le"
_ERRORS = "surrogatepass"


class TextBuffer:
    """Reusable text accumulator with doubling growth."""

    def __init__(self, capacity: int | None = None) -> None:
        initial = capacity if capacity is not None else get_config().text_buffer_capacity
        if initial <= 0:
            raise ValueError(f"capacity must be > 0, got {initial}")
        self._data = bytearray(initial * _UNIT)
        self._capacity = initial
        self._position = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def remaining(self) -> int:
        return self._capacity - self._position

    def __len__(self) -> int:
        return self._position

    def _resize(self, to_write: int) -> None:
        next_capacity = self._capacity << 1
        while next_capacity - self._position < to_write:
            next_capacity <<= 1
        grown = bytearray(next_capacity * _UNIT)
        end = self._position * _UNIT
        grown[:end] = self._data[:end]
        self._data = grown
        self._capacity = next_capacity

    def append(self, text: str) -> None:
        """Copy *text* onto the end of the buffer, growing if needed."""
        if not text:
            return
        encoded = text.encode(_CODEC, _ERRORS)
        count = len(encoded) // _UNIT
        if self.remaining < count:
            self._resize(count)
        start = self._position * _UNIT
        self._data[start:start + len(encoded)] = encoded
        self._position += count

    def reset(self) -> None:
        """Logically empty the buffer. Capacity is retained."""
        self._position = 0

    def getvalue(self) -> str:
        return self._data[:self._position * _UNIT].decode(_CODEC, _ERRORS)

    def __str__(self) -> str:
        return self.getvalue()

    def __repr__(self) -> str:
        return f"TextBuffer(length={self._position}, capacity={self._capacity})"


__sdk_export__ = {
    "exports": ["TextBuffer"],
    "description": "Per-call growable text buffer for response decoding",
    "tier": "tier1_runtime",
    "module": "buffer",
}
