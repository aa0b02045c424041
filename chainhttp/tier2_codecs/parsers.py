"""
chainhttp.tier2_codecs.parsers
───────────────────────────────
Built-in response body parsers. Every parser has the signature
``parser(from_server) -> value`` and reads the body from
``from_server.input_stream`` using ``from_server.charset``.

stream_to_bytes performs no interpretation and is the fallback for any
content type nobody registered a parser for.
"""
from __future__ import annotations

import codecs
import io
import os
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Callable

from chainhttp.tier0_core.config import get_config
from chainhttp.tier0_core.errors import TransferError
from chainhttp.tier1_runtime import form as _form
from chainhttp.tier1_runtime.markup import parse_html, parse_xml
from chainhttp.tier1_runtime.serialize import read_json
from chainhttp.tier1_runtime.streams import FromServer, transfer

Parser = Callable[[FromServer], Any]


def stream_to_bytes(from_server: FromServer) -> bytes:
    """Drain the body into a byte string."""
    out = io.BytesIO()
    transfer(from_server.input_stream, out)
    return out.getvalue()


def text_to_string(from_server: FromServer) -> str:
    """Decode the body into a string through the handle's growable buffer."""
    buffer = from_server.buffer
    buffer.reset()
    charset = from_server.charset
    size = get_config().transfer_chunk_size
    stream = from_server.input_stream
    try:
        decoder = codecs.getincrementaldecoder(charset)()
        while True:
            chunk = stream.read(size)
            if not chunk:
                break
            buffer.append(decoder.decode(chunk))
        buffer.append(decoder.decode(b"", final=True))
    except OSError as exc:
        raise TransferError(f"Reading text body failed: {exc}") from exc
    except (UnicodeDecodeError, LookupError) as exc:
        raise TransferError(f"Cannot decode body as {charset}: {exc}") from exc
    return buffer.getvalue()


def form(from_server: FromServer) -> dict[str, list[str]]:
    """Decode ``key=value&...`` into name → list of values."""
    return _form.decode(from_server.input_stream, from_server.charset)


def xml(from_server: FromServer) -> ET.Element:
    return parse_xml(from_server.input_stream, from_server.charset, from_server.content_type)


def html(from_server: FromServer) -> ET.Element:
    return parse_html(from_server.input_stream, from_server.charset, from_server.content_type)


def json(from_server: FromServer) -> Any:
    return read_json(from_server.input_stream, from_server.charset, from_server.content_type)


def download(path: str | os.PathLike) -> Parser:
    """
    Build a parser that streams the body into *path* and returns the
    ``Path`` it wrote instead of an in-memory value.
    """
    target_path = Path(path)

    def _download(from_server: FromServer) -> Path:
        try:
            target = open(target_path, "wb")
        except OSError as exc:
            raise TransferError(f"Cannot open download target {target_path}: {exc}") from exc
        transfer(from_server.input_stream, target, close=True)
        return target_path

    return _download


__sdk_export__ = {
    "exports": ["stream_to_bytes", "text_to_string", "form", "xml", "html", "json", "download"],
    "description": "Built-in response parsers and the raw-bytes fallback",
    "tier": "tier2_codecs",
    "module": "parsers",
}
