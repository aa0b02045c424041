"""
chainhttp.tier1_runtime.form
─────────────────────────────
application/x-www-form-urlencoded encoding and decoding.

Encoding takes a mapping of name → value or name → sequence of values
(one ``name=value`` pair per element). Decoding always yields
name → list of values so repeated keys survive.
"""
from __future__ import annotations

from typing import Any, BinaryIO, Iterable, Mapping
from urllib.parse import parse_qsl, quote_plus

from chainhttp.tier0_core.errors import ParseError, TransferError
from chainhttp.tier0_core.http import ContentTypes


def _values(value: Any) -> Iterable[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        return (value,)
    return value


def encode(params: Mapping[Any, Any], charset: str = "utf-8") -> str:
    """Percent-encode *params* as ``key=value`` pairs joined by ``&``."""
    pairs = []
    for key, value in params.items():
        name = quote_plus(str(key), encoding=charset)
        for item in _values(value):
            text = "" if item is None else str(item)
            pairs.append(f"{name}={quote_plus(text, encoding=charset)}")
    return "&".join(pairs)


def decode_text(text: str, charset: str = "utf-8") -> dict[str, list[str]]:
    result: dict[str, list[str]] = {}
    try:
        pairs = parse_qsl(text, keep_blank_values=True, encoding=charset, errors="strict")
    except (UnicodeDecodeError, ValueError) as exc:
        raise ParseError(
            f"Malformed form body: {exc}", content_type=ContentTypes.URLENC[0]
        ) from exc
    for name, value in pairs:
        result.setdefault(name, []).append(value)
    return result


def decode(stream: BinaryIO, charset: str = "utf-8") -> dict[str, list[str]]:
    """Read *stream* to the end and decode it as form data."""
    try:
        raw = stream.read()
    except OSError as exc:
        raise TransferError(f"Reading form body failed: {exc}") from exc
    try:
        text = raw.decode(charset)
    except LookupError as exc:
        raise TransferError(f"Unknown charset {charset!r}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ParseError(
            f"Form body is not valid {charset}: {exc}",
            content_type=ContentTypes.URLENC[0],
        ) from exc
    return decode_text(text.strip(), charset)


__sdk_export__ = {
    "exports": ["encode", "decode"],
    "description": "Form urlencoded codec supporting repeated keys",
    "tier": "tier1_runtime",
    "module": "form",
}
