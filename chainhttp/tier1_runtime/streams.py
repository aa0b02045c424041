"""
chainhttp.tier1_runtime.streams
────────────────────────────────
The in-process boundary between the codec core and the transport.

  ToServer   — sink an encoder hands exactly one byte stream to
  FromServer — handle a parser reads the response body from

Both are Protocols so any transport can supply its own implementation.
CapturingToServer and BytesFromServer are the in-memory versions used by
the httpx client adapter and by tests.
"""
from __future__ import annotations

import codecs
import contextlib
import io
from dataclasses import dataclass, field
from typing import IO, Any, BinaryIO, Mapping, Protocol, TextIO, runtime_checkable

from chainhttp.tier0_core.config import get_config
from chainhttp.tier0_core.errors import TransferError
from chainhttp.tier0_core.http import charset_of, normalize_content_type
from chainhttp.tier1_runtime.buffer import TextBuffer


# ── Protocols ────────────────────────────────────────────────────────────────

@runtime_checkable
class ToServer(Protocol):
    def to_server(self, stream: BinaryIO) -> None:
        """Consume *stream* fully before returning. Must not close it."""
        ...


@runtime_checkable
class FromServer(Protocol):
    @property
    def input_stream(self) -> BinaryIO: ...

    @property
    def charset(self) -> str: ...

    @property
    def content_type(self) -> str | None: ...

    @property
    def status(self) -> int: ...

    @property
    def headers(self) -> Mapping[str, str]: ...

    @property
    def buffer(self) -> TextBuffer: ...


# ── Transfer ─────────────────────────────────────────────────────────────────

def _copy(istream: IO[bytes], ostream: IO[bytes], size: int) -> int:
    total = 0
    try:
        while True:
            chunk = istream.read(size)
            if not chunk:
                break
            ostream.write(chunk)
            total += len(chunk)
    except OSError as exc:
        raise TransferError(f"Body transfer failed: {exc}") from exc
    return total


def transfer(
    istream: IO[bytes],
    ostream: IO[bytes],
    *,
    close: bool = False,
    chunk_size: int | None = None,
) -> int:
    """
    Copy *istream* into *ostream* in fixed-size chunks. Returns the number
    of bytes copied. When *close* is set, *ostream* is closed exactly once
    on every exit path. I/O failures surface as TransferError; a failed
    close is reported only when the copy itself succeeded.
    """
    size = chunk_size or get_config().transfer_chunk_size
    try:
        total = _copy(istream, ostream, size)
    except BaseException:
        if close:
            with contextlib.suppress(OSError):
                ostream.close()
        raise
    if close:
        try:
            ostream.close()
        except OSError as exc:
            raise TransferError(f"Closing transfer target failed: {exc}") from exc
    return total


class EncodingReader(io.RawIOBase):
    """
    Byte stream view over a character stream, encoding with *charset* as it
    is read. Closing the view leaves the wrapped stream open. Characters the
    charset cannot represent raise TransferError.
    """

    def __init__(self, source: TextIO, charset: str, chunk_size: int | None = None) -> None:
        super().__init__()
        try:
            self._encoder = codecs.getincrementalencoder(charset)()
        except LookupError as exc:
            raise TransferError(f"Unknown charset {charset!r}: {exc}") from exc
        self._source = source
        self._charset = charset
        self._chunk_size = chunk_size or get_config().transfer_chunk_size
        self._pending = b""
        self._eof = False

    def readable(self) -> bool:
        return True

    def _fill(self) -> None:
        text = self._source.read(self._chunk_size)
        try:
            if text:
                self._pending = self._encoder.encode(text)
            else:
                self._pending = self._encoder.encode("", final=True)
                self._eof = True
        except UnicodeEncodeError as exc:
            raise TransferError(f"Cannot encode body as {self._charset}: {exc}") from exc

    def readinto(self, b: Any) -> int:
        while not self._pending and not self._eof:
            self._fill()
        count = min(len(b), len(self._pending))
        b[:count] = self._pending[:count]
        self._pending = self._pending[count:]
        return count


# ── In-memory implementations ────────────────────────────────────────────────

class CapturingToServer:
    """Sink that drains the delivered stream into ``payload``."""

    def __init__(self) -> None:
        self._sink = io.BytesIO()
        self.calls = 0

    def to_server(self, stream: BinaryIO) -> None:
        if self.calls:
            raise TransferError("Sink already received a request body")
        self.calls += 1
        transfer(stream, self._sink)

    @property
    def delivered(self) -> bool:
        return self.calls > 0

    @property
    def payload(self) -> bytes:
        return self._sink.getvalue()


@dataclass
class BytesFromServer:
    """
    Response handle over a body already held in memory (or any readable
    byte stream). The charset comes from, in order: the explicit argument,
    the Content-Type ``charset`` parameter, the configured default.
    """
    body: bytes | BinaryIO = b""
    raw_content_type: str | None = None
    status: int = 200
    headers: Mapping[str, str] = field(default_factory=dict)
    explicit_charset: str | None = None
    buffer: TextBuffer = field(default_factory=TextBuffer)

    def __post_init__(self) -> None:
        if isinstance(self.body, (bytes, bytearray)):
            self._stream: BinaryIO = io.BytesIO(bytes(self.body))
        else:
            self._stream = self.body

    @property
    def input_stream(self) -> BinaryIO:
        return self._stream

    @property
    def content_type(self) -> str | None:
        return normalize_content_type(self.raw_content_type)

    @property
    def charset(self) -> str:
        return (
            self.explicit_charset
            or charset_of(self.raw_content_type)
            or get_config().default_charset
        )


__sdk_export__ = {
    "exports": ["ToServer", "FromServer", "CapturingToServer", "BytesFromServer", "transfer"],
    "description": "Sink and source abstractions between codecs and transport",
    "tier": "tier1_runtime",
    "module": "streams",
}
