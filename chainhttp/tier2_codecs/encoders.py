"""
chainhttp.tier2_codecs.encoders
────────────────────────────────
Built-in request body encoders. Every encoder has the signature
``encoder(request, sink) -> None`` and follows the same contract:

  1. an absent effective body raises NullBodyError
  2. a raw body (file path, byte stream, character stream) is streamed to
     the sink as-is, transcoding characters with the effective charset
  3. a body whose kind the codec does not accept raises
     UnsupportedBodyTypeError
  4. otherwise the body is transformed to bytes and handed to the sink

The sink is called exactly once on success and never on failure.

Usage:
    @encoder(BodyKind.TEXT)
    def shout(body, charset, sink):
        deliver_text(sink, body.value.upper(), charset)
"""
from __future__ import annotations

import functools
import io
from typing import TYPE_CHECKING, Callable, Iterable

from chainhttp.tier0_core.config import get_config
from chainhttp.tier0_core.errors import NullBodyError, TransferError, UnsupportedBodyTypeError
from chainhttp.tier1_runtime import form as _form
from chainhttp.tier1_runtime.body import Body, BodyKind
from chainhttp.tier1_runtime.markup import serialize as serialize_markup
from chainhttp.tier1_runtime.serialize import to_json
from chainhttp.tier1_runtime.streams import EncodingReader, ToServer

if TYPE_CHECKING:
    from chainhttp.tier3_chain.nodes import ChainedRequest

Encoder = Callable[["ChainedRequest", ToServer], None]
Transform = Callable[[Body, str, ToServer], None]


# ── Contract helpers ─────────────────────────────────────────────────────────

def check_null(body: Body | None) -> Body:
    if body is None:
        raise NullBodyError()
    return body


def check_types(body: Body, accepted: Iterable[BodyKind]) -> None:
    accepted = tuple(accepted)
    if body.kind not in accepted:
        raise UnsupportedBodyTypeError(
            body.type_name,
            [kind.value for kind in accepted],
            kind=body.kind.value,
        )


def handle_raw_upload(body: Body, sink: ToServer, charset: str) -> bool:
    """Stream raw bodies straight to *sink*. Returns False for anything else."""
    if body.kind is BodyKind.FILE:
        try:
            handle = open(body.value, "rb")
        except OSError as exc:
            raise TransferError(f"Cannot open upload file {body.value!r}: {exc}") from exc
        with handle:
            sink.to_server(handle)
        return True
    if body.kind is BodyKind.BYTE_STREAM:
        sink.to_server(body.value)
        return True
    if body.kind is BodyKind.CHAR_STREAM:
        sink.to_server(EncodingReader(body.value, charset))
        return True
    return False


def deliver_text(sink: ToServer, text: str, charset: str) -> None:
    try:
        payload = text.encode(charset)
    except (UnicodeEncodeError, LookupError) as exc:
        raise TransferError(f"Cannot encode body as {charset}: {exc}") from exc
    sink.to_server(io.BytesIO(payload))


def effective_charset(request: "ChainedRequest") -> str:
    return request.actual_charset() or get_config().default_charset


def encoder(*accepted: BodyKind) -> Callable[[Transform], Encoder]:
    """
    Wrap a body transform with the shared encoder contract. The resulting
    encoder carries its accepted kinds on ``.accepts``.
    """
    def decorator(transform: Transform) -> Encoder:
        @functools.wraps(transform)
        def encode(request: "ChainedRequest", sink: ToServer) -> None:
            body = check_null(request.actual_body())
            charset = effective_charset(request)
            if handle_raw_upload(body, sink, charset):
                return
            check_types(body, accepted)
            transform(body, charset, sink)

        encode.accepts = accepted  # type: ignore[attr-defined]
        return encode
    return decorator


# ── Built-in encoders ────────────────────────────────────────────────────────

@encoder(BodyKind.BYTES)
def binary(body: Body, charset: str, sink: ToServer) -> None:
    """Pass byte sequences through unchanged."""
    sink.to_server(io.BytesIO(bytes(body.value)))


@encoder(BodyKind.TEXT, BodyKind.CHAR_PRODUCER)
def text(body: Body, charset: str, sink: ToServer) -> None:
    """Charset-encode text, calling character producers for their text first."""
    value = body.value() if body.kind is BodyKind.CHAR_PRODUCER else body.value
    deliver_text(sink, str(value), charset)


@encoder(BodyKind.TEXT, BodyKind.MAPPING)
def form(body: Body, charset: str, sink: ToServer) -> None:
    """
    Strings are assumed to be url encoded already and are sent as is.
    Mappings are encoded as ``key=value`` pairs joined with ``&``.
    """
    if body.kind is BodyKind.TEXT:
        deliver_text(sink, body.value, charset)
    else:
        deliver_text(sink, _form.encode(body.value, charset), charset)


@encoder(BodyKind.TEXT, BodyKind.MARKUP)
def xml(body: Body, charset: str, sink: ToServer) -> None:
    if body.kind is BodyKind.TEXT:
        deliver_text(sink, body.value, charset)
    else:
        deliver_text(sink, serialize_markup(body.value), charset)


@encoder(BodyKind.TEXT, BodyKind.MAPPING, BodyKind.STRUCTURED)
def json(body: Body, charset: str, sink: ToServer) -> None:
    # text is taken to be json already
    payload = body.value if body.kind is BodyKind.TEXT else to_json(body.value)
    deliver_text(sink, payload, charset)


__sdk_export__ = {
    "exports": ["binary", "text", "form", "xml", "json", "encoder"],
    "description": "Built-in request body encoders with kind validation",
    "tier": "tier2_codecs",
    "module": "encoders",
}
