"""
chainhttp.tier2_codecs.registry
────────────────────────────────
Process-scoped codec registry: content type → encoder for requests and
content type → parser for responses.

The host application builds a registry during start-up (usually with
``default_registry()``), may register additional codecs, and then hands it
to the root configuration. It is read-only while requests are in flight.
"""
from __future__ import annotations

from typing import Iterable

from chainhttp.tier0_core.http import ContentTypes, normalize_content_type
from chainhttp.tier0_core.logging import get_logger
from chainhttp.tier1_runtime.body import BodyKind
from chainhttp.tier2_codecs import encoders, parsers
from chainhttp.tier2_codecs.encoders import Encoder
from chainhttp.tier2_codecs.parsers import Parser

logger = get_logger(__name__)


def _key(content_type: str) -> str:
    key = normalize_content_type(content_type)
    if not key:
        raise ValueError("Content type cannot be empty")
    return key


class CodecRegistry:
    """Registry mapping content types to encoders and parsers."""

    def __init__(self) -> None:
        self._encoders: dict[str, Encoder] = {}
        self._parsers: dict[str, Parser] = {}

    def register_encoder(
        self,
        content_types: str | Iterable[str],
        encoder: Encoder,
        *,
        replace: bool = False,
    ) -> None:
        for content_type in _as_tuple(content_types):
            key = _key(content_type)
            if key in self._encoders and not replace:
                raise ValueError(f"Encoder for {key} already registered")
            self._encoders[key] = encoder
            logger.debug(
                "codec.encoder_registered",
                content_type=key,
                encoder=getattr(encoder, "__name__", type(encoder).__name__),
                accepts=[k.value for k in accepted_kinds(encoder)],
            )

    def register_parser(
        self,
        content_types: str | Iterable[str],
        parser: Parser,
        *,
        replace: bool = False,
    ) -> None:
        for content_type in _as_tuple(content_types):
            key = _key(content_type)
            if key in self._parsers and not replace:
                raise ValueError(f"Parser for {key} already registered")
            self._parsers[key] = parser
            logger.debug(
                "codec.parser_registered",
                content_type=key,
                parser=getattr(parser, "__name__", type(parser).__name__),
            )

    def encoder(self, content_type: str) -> Encoder:
        found = self.encoder_if_exists(content_type)
        if found is None:
            available = ", ".join(sorted(self._encoders))
            raise KeyError(f"No encoder registered for {content_type}. Available: {available}")
        return found

    def encoder_if_exists(self, content_type: str) -> Encoder | None:
        return self._encoders.get(_key(content_type))

    def parser(self, content_type: str) -> Parser:
        found = self.parser_if_exists(content_type)
        if found is None:
            available = ", ".join(sorted(self._parsers))
            raise KeyError(f"No parser registered for {content_type}. Available: {available}")
        return found

    def parser_if_exists(self, content_type: str) -> Parser | None:
        return self._parsers.get(_key(content_type))

    def content_types(self) -> list[str]:
        return sorted(set(self._encoders) | set(self._parsers))

    def encoder_map(self) -> dict[str, Encoder]:
        return dict(self._encoders)

    def parser_map(self) -> dict[str, Parser]:
        return dict(self._parsers)


def _as_tuple(content_types: str | Iterable[str]) -> tuple[str, ...]:
    if isinstance(content_types, str):
        return (content_types,)
    return tuple(content_types)


def accepted_kinds(encoder: Encoder) -> tuple[BodyKind, ...]:
    """Kinds an encoder validates against; empty for custom encoders."""
    return tuple(getattr(encoder, "accepts", ()))


def default_registry() -> CodecRegistry:
    """Build a registry holding the built-in codecs."""
    registry = CodecRegistry()

    registry.register_encoder(ContentTypes.ANY, encoders.binary)
    registry.register_encoder(ContentTypes.BINARY, encoders.binary)
    registry.register_encoder(ContentTypes.TEXT, encoders.text)
    registry.register_encoder(ContentTypes.URLENC, encoders.form)
    registry.register_encoder(ContentTypes.XML, encoders.xml)
    registry.register_encoder(ContentTypes.JSON, encoders.json)

    registry.register_parser(ContentTypes.BINARY, parsers.stream_to_bytes)
    registry.register_parser(ContentTypes.TEXT, parsers.text_to_string)
    registry.register_parser(ContentTypes.URLENC, parsers.form)
    registry.register_parser(ContentTypes.XML, parsers.xml)
    registry.register_parser(ContentTypes.HTML, parsers.html)
    registry.register_parser(ContentTypes.JSON, parsers.json)

    return registry


__all__ = ["CodecRegistry", "default_registry", "accepted_kinds"]
