"""
chainhttp.tier3_chain.negotiation
──────────────────────────────────
Content negotiation over a fully assembled request/response pair: which
content type, which encoder, which parser, which status handler.

Failures are explicit. A body without a content type, or a content type
without an encoder, raises ConfigurationError. Parser selection is the one
deliberate exception: an unknown response content type degrades to the raw
bytes parser, so a response is always consumable.

Usage:
    config = ChainedHttpConfig.root(default_registry())
    config.chained_request.content_type = "application/json"

    call = config.child()
    call.chained_request.body = {"a": 1}

    sink = CapturingToServer()
    call.encode(sink)                      # sink.payload == b'{"a":1}'
"""
from __future__ import annotations

from typing import Any

from chainhttp.tier0_core.config import get_config
from chainhttp.tier0_core.errors import ConfigurationError
from chainhttp.tier0_core.http import is_success, normalize_content_type
from chainhttp.tier0_core.logging import get_logger
from chainhttp.tier1_runtime.body import Body
from chainhttp.tier1_runtime.streams import FromServer, ToServer
from chainhttp.tier2_codecs.encoders import Encoder
from chainhttp.tier2_codecs.parsers import Parser, stream_to_bytes
from chainhttp.tier2_codecs.registry import CodecRegistry, default_registry
from chainhttp.tier3_chain.handlers import FAILURE, SUCCESS, StatusHandler
from chainhttp.tier3_chain.nodes import Auth, ChainedRequest, ChainedResponse, Cookie

logger = get_logger(__name__)


# ── Request side ─────────────────────────────────────────────────────────────

def effective_body(request: ChainedRequest) -> Body | None:
    return request.actual_body()


def effective_charset(request: ChainedRequest) -> str:
    return request.actual_charset() or get_config().default_charset


def effective_content_type(request: ChainedRequest) -> str | None:
    """
    Nearest content type on the chain. Content type is mandatory whenever a
    body exists and is never defaulted silently.
    """
    content_type = request.actual_content_type()
    if content_type is None and request.actual_body() is not None:
        raise ConfigurationError("Found request body, but content type is undefined")
    return content_type


def effective_encoder(request: ChainedRequest) -> Encoder:
    content_type = effective_content_type(request)
    if content_type is None:
        raise ConfigurationError("Did not find encoder: content type is undefined")
    encoder = request.actual_encoder(content_type)
    if encoder is None:
        raise ConfigurationError(
            f"Did not find encoder for content type {content_type}",
            content_type=content_type,
        )
    return encoder


def effective_headers(request: ChainedRequest) -> dict[str, str]:
    return request.actual_headers({})


def effective_cookies(request: ChainedRequest) -> list[Cookie]:
    return request.actual_cookies([])


def effective_auth(request: ChainedRequest) -> Auth | None:
    return request.actual_auth()


# ── Response side ────────────────────────────────────────────────────────────

def effective_parser(response: ChainedResponse, content_type: str | None) -> Parser:
    key = normalize_content_type(content_type)
    parser = response.actual_parser(key) if key else None
    if parser is None:
        logger.debug("negotiation.parser_fallback", content_type=content_type)
        return stream_to_bytes
    return parser


def effective_status_handler(response: ChainedResponse, code: int) -> StatusHandler:
    """
    Handler for exactly *code* if any level set one, otherwise the success
    (1xx–3xx) or failure handler.
    """
    handler = response.actual_action(code)
    if handler is not None:
        return handler
    if is_success(code):
        return response.actual_success() or SUCCESS
    return response.actual_failure() or FAILURE


# ── Config pair ──────────────────────────────────────────────────────────────

class ChainedHttpConfig:
    """A request node and a response node that share one level of the chain."""

    def __init__(
        self,
        chained_request: ChainedRequest,
        chained_response: ChainedResponse,
        parent: ChainedHttpConfig | None = None,
    ) -> None:
        self.chained_request = chained_request
        self.chained_response = chained_response
        self.parent = parent

    @classmethod
    def root(cls, registry: CodecRegistry | None = None) -> "ChainedHttpConfig":
        """Library-wide defaults holding the codecs of *registry*."""
        registry = registry or default_registry()
        return cls(ChainedRequest.root(registry), ChainedResponse.root(registry))

    def child(self) -> "ChainedHttpConfig":
        """Next level down. Freezes this level."""
        return ChainedHttpConfig(
            self.chained_request.child(),
            self.chained_response.child(),
            parent=self,
        )

    def find_content_type(self) -> str | None:
        return effective_content_type(self.chained_request)

    def find_encoder(self) -> Encoder:
        return effective_encoder(self.chained_request)

    def find_parser(self, content_type: str | None) -> Parser:
        return effective_parser(self.chained_response, content_type)

    def find_status_handler(self, code: int) -> StatusHandler:
        return effective_status_handler(self.chained_response, code)

    def encode(self, sink: ToServer) -> bool:
        """
        Encode the effective body into *sink*. Returns False, leaving the
        sink untouched, when no level sets a body.
        """
        if effective_body(self.chained_request) is None:
            return False
        self.find_encoder()(self.chained_request, sink)
        return True

    def handle(self, from_server: FromServer) -> Any:
        """Parse the response body and pass it to the matching status handler."""
        body = self.find_parser(from_server.content_type)(from_server)
        return self.find_status_handler(from_server.status)(from_server, body)


__sdk_export__ = {
    "exports": [
        "ChainedHttpConfig", "effective_content_type", "effective_encoder",
        "effective_parser", "effective_headers", "effective_cookies",
        "effective_auth", "effective_status_handler", "effective_body",
        "effective_charset",
    ],
    "description": "Effective content type, encoder, parser and handler resolution",
    "tier": "tier3_chain",
    "module": "negotiation",
}
