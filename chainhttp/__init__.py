"""
chainhttp
─────────
Stable top-level exports. Import from here, not from sub-modules directly.
Every name exported here is part of the public API and subject to semver.
"""
from chainhttp.tier0_core.config import ChainHttpSettings, get_config
from chainhttp.tier0_core.errors import (
    ChainHttpError,
    ConfigurationError,
    HttpException,
    NullBodyError,
    ParseError,
    TransferError,
    UnsupportedBodyTypeError,
)
from chainhttp.tier0_core.http import HTTP, ContentTypes
from chainhttp.tier0_core.logging import get_logger

from chainhttp.tier1_runtime.body import Body, BodyKind, classify
from chainhttp.tier1_runtime.buffer import TextBuffer
from chainhttp.tier1_runtime.context import ExchangeContext, get_context
from chainhttp.tier1_runtime.streams import (
    BytesFromServer,
    CapturingToServer,
    FromServer,
    ToServer,
    transfer,
)
from chainhttp.tier1_runtime.traverse import accumulate, first_non_null, traverse

from chainhttp.tier2_codecs import encoders, parsers
from chainhttp.tier2_codecs.registry import CodecRegistry, default_registry

from chainhttp.tier3_chain.handlers import HandlerArity, StatusHandler
from chainhttp.tier3_chain.negotiation import ChainedHttpConfig
from chainhttp.tier3_chain.nodes import Auth, AuthType, ChainedRequest, ChainedResponse, Cookie

from chainhttp.tier4_client.client import HttpClient

__version__ = "0.1.0"
__all__ = [
    # config
    "get_config", "ChainHttpSettings",
    # errors
    "ChainHttpError", "ConfigurationError", "NullBodyError",
    "UnsupportedBodyTypeError", "TransferError", "ParseError", "HttpException",
    # http
    "HTTP", "ContentTypes",
    # logging
    "get_logger",
    # body
    "Body", "BodyKind", "classify",
    # buffer
    "TextBuffer",
    # context
    "ExchangeContext", "get_context",
    # streams
    "ToServer", "FromServer", "CapturingToServer", "BytesFromServer", "transfer",
    # traverse
    "traverse", "first_non_null", "accumulate",
    # codecs
    "encoders", "parsers", "CodecRegistry", "default_registry",
    # chain
    "ChainedRequest", "ChainedResponse", "ChainedHttpConfig",
    "Auth", "AuthType", "Cookie", "StatusHandler", "HandlerArity",
    # client
    "HttpClient",
]
