"""
chainhttp.tier1_runtime.body
─────────────────────────────
Closed set of body kinds. A body is classified exactly once, when it is set
on a configuration node, and every codec dispatches on the resulting tag
instead of re-inspecting the runtime type.

Subtype compatibility lives here: any Mapping is MAPPING, any text-mode
stream is CHAR_STREAM, any PathLike is FILE, and so on.
"""
from __future__ import annotations

import dataclasses
import io
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel


class BodyKind(str, Enum):
    FILE = "file"
    BYTE_STREAM = "byte-stream"
    CHAR_STREAM = "character-stream"
    BYTES = "bytes"
    TEXT = "text"
    CHAR_PRODUCER = "character-producer"
    MARKUP = "structured-markup"
    MAPPING = "mapping"
    STRUCTURED = "structured-value"
    OPAQUE = "opaque"


# Bodies of these kinds are streamed as-is by every encoder.
RAW_KINDS: frozenset[BodyKind] = frozenset({
    BodyKind.FILE,
    BodyKind.BYTE_STREAM,
    BodyKind.CHAR_STREAM,
})

_SCALARS = (bool, int, float)


@dataclass(frozen=True)
class Body:
    """A request body tagged with its kind."""
    kind: BodyKind
    value: Any

    @property
    def is_raw(self) -> bool:
        return self.kind in RAW_KINDS

    @property
    def type_name(self) -> str:
        cls = type(self.value)
        if cls.__module__ == "builtins":
            return cls.__qualname__
        return f"{cls.__module__}.{cls.__qualname__}"


def _kind_of(value: Any) -> BodyKind:
    if isinstance(value, os.PathLike):
        return BodyKind.FILE
    if isinstance(value, io.TextIOBase):
        return BodyKind.CHAR_STREAM
    if isinstance(value, io.IOBase):
        return BodyKind.BYTE_STREAM
    if isinstance(value, (bytes, bytearray, memoryview)):
        return BodyKind.BYTES
    if isinstance(value, str):
        return BodyKind.TEXT
    if isinstance(value, (ET.Element, ET.ElementTree)):
        return BodyKind.MARKUP
    if isinstance(value, Mapping):
        return BodyKind.MAPPING
    if isinstance(value, (list, tuple, BaseModel) + _SCALARS):
        return BodyKind.STRUCTURED
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return BodyKind.STRUCTURED
    if callable(value):
        return BodyKind.CHAR_PRODUCER
    if callable(getattr(value, "read", None)):
        return BodyKind.BYTE_STREAM
    return BodyKind.OPAQUE


def classify(value: Any) -> Body | None:
    """
    Tag *value* with its BodyKind. None stays None (no body); an already
    classified Body is returned unchanged.
    """
    if value is None:
        return None
    if isinstance(value, Body):
        return value
    return Body(kind=_kind_of(value), value=value)


__sdk_export__ = {
    "exports": ["Body", "BodyKind", "classify"],
    "description": "Tagged body kinds produced once when a body is accepted",
    "tier": "tier1_runtime",
    "module": "body",
}
