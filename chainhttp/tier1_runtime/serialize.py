"""
chainhttp.tier1_runtime.serialize
──────────────────────────────────
JSON serialization for request and response bodies. Pydantic models and
dataclasses are dumped through their JSON-mode representation; everything
else goes through the standard json module.
"""
from __future__ import annotations

import codecs
import dataclasses
import json
from typing import Any, BinaryIO

from pydantic import BaseModel

from chainhttp.tier0_core.errors import ParseError, TransferError, UnsupportedBodyTypeError


def _default(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def to_json(obj: Any) -> str:
    """
    Serialize a structured value to JSON text.

    Usage:
        to_json({"a": 1})            # → '{"a":1}'
        to_json(my_model)            # pydantic model → its JSON form
    """
    if isinstance(obj, BaseModel):
        return obj.model_dump_json()
    try:
        return json.dumps(obj, default=_default, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise UnsupportedBodyTypeError(
            type(obj).__name__, ("mapping", "structured-value", "text"), reason=str(exc)
        ) from exc


def from_json(text: str, content_type: str | None = None) -> Any:
    """Parse JSON text into nested dicts, lists and scalars."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Malformed json body: {exc}", content_type=content_type) from exc


def read_json(stream: BinaryIO, charset: str, content_type: str | None = None) -> Any:
    """Decode *stream* with *charset* and parse it as JSON."""
    try:
        raw = stream.read()
    except OSError as exc:
        raise TransferError(f"Reading json body failed: {exc}") from exc
    try:
        text = codecs.decode(raw, charset)
    except LookupError as exc:
        raise TransferError(f"Unknown charset {charset!r}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ParseError(
            f"Json body is not valid {charset}: {exc}", content_type=content_type
        ) from exc
    return from_json(text, content_type)


__sdk_export__ = {
    "exports": ["to_json", "from_json"],
    "description": "JSON serialization with pydantic model support",
    "tier": "tier1_runtime",
    "module": "serialize",
}
