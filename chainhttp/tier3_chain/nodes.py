"""
chainhttp.tier3_chain.nodes
────────────────────────────
Configuration nodes. A node holds only what was set at its own level and
points at its parent; the ``actual_*`` methods resolve effective values by
walking the chain (see tier1_runtime.traverse).

Parents are frozen the moment a child is built from them, and the parent
reference is fixed at construction, so chains are acyclic by construction
and shared ancestors are safe to resolve from many threads at once.

Usage:
    root = ChainedRequest.root(default_registry())
    root.content_type = "application/json"

    call = root.child()          # root is frozen from here on
    call.body = {"a": 1}
    call.headers["X-Trace"] = "abc"
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterable, TypeVar

from chainhttp.tier0_core.config import get_config
from chainhttp.tier0_core.errors import ConfigurationError
from chainhttp.tier0_core.http import normalize_content_type
from chainhttp.tier1_runtime.body import Body, classify
from chainhttp.tier1_runtime.traverse import accumulate, extend, first_non_null, merge_absent
from chainhttp.tier2_codecs.encoders import Encoder
from chainhttp.tier2_codecs.parsers import Parser
from chainhttp.tier2_codecs.registry import CodecRegistry
from chainhttp.tier3_chain.handlers import FAILURE, SUCCESS, HandlerArity, StatusHandler, as_handler

NodeT = TypeVar("NodeT", bound="_ChainedNode")

_SUCCESS_KEY = "success"
_FAILURE_KEY = "failure"


# ── Value records ────────────────────────────────────────────────────────────

class AuthType(str, Enum):
    BASIC = "basic"
    DIGEST = "digest"


@dataclass(frozen=True)
class Auth:
    """
    Opaque authentication descriptor. It is resolved by the chain and handed
    to the transport; the core never performs the authentication itself.
    An Auth with no ``auth_type`` counts as unset during resolution.
    """
    user: str | None = None
    password: str | None = field(default=None, repr=False)
    auth_type: AuthType | None = None
    preemptive: bool = False

    @classmethod
    def basic(cls, user: str, password: str, preemptive: bool = False) -> "Auth":
        return cls(user, password, AuthType.BASIC, preemptive)

    @classmethod
    def digest(cls, user: str, password: str, preemptive: bool = False) -> "Auth":
        return cls(user, password, AuthType.DIGEST, preemptive)


@dataclass(frozen=True)
class Cookie:
    name: str
    value: str
    domain: str | None = None
    path: str | None = None
    expires: str | None = None


def _has_auth_kind(auth: Auth | None) -> bool:
    return auth is not None and auth.auth_type is not None


def _keys(content_types: str | Iterable[str]) -> list[str]:
    if isinstance(content_types, str):
        content_types = (content_types,)
    keys = []
    for content_type in content_types:
        key = normalize_content_type(content_type)
        if not key:
            raise ValueError("Content type cannot be empty")
        keys.append(key)
    return keys


# ── Base node ────────────────────────────────────────────────────────────────

class _ChainedNode:
    _frozen: bool = False

    def __init__(self, parent: Any = None) -> None:
        if parent is not None:
            if type(parent) is not type(self):
                raise TypeError(
                    f"{type(self).__name__} parent must be a {type(self).__name__}, "
                    f"got {type(parent).__name__}"
                )
            parent.freeze()
        object.__setattr__(self, "_parent", parent)

    def __setattr__(self, name: str, value: Any) -> None:
        if self._frozen:
            raise ConfigurationError(
                f"Cannot set {name!r}: {type(self).__name__} is frozen",
                field=name,
            )
        super().__setattr__(name, value)

    @property
    def parent(self):
        return self._parent

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self, what: str) -> None:
        if self._frozen:
            raise ConfigurationError(
                f"Cannot change {what}: {type(self).__name__} is frozen",
                field=what,
            )

    def freeze(self: NodeT) -> NodeT:
        """Make this node read-only. Idempotent."""
        if not self._frozen:
            self._freeze_collections()
            object.__setattr__(self, "_frozen", True)
        return self

    def _freeze_collections(self) -> None:
        raise NotImplementedError

    def child(self: NodeT) -> NodeT:
        """Build a child node. Freezes this node."""
        return type(self)(parent=self)

    def depth(self) -> int:
        count, node = 0, self._parent
        while node is not None:
            count, node = count + 1, node.parent
        return count

    @staticmethod
    def _parent_of(node: "_ChainedNode") -> "_ChainedNode | None":
        return node.parent


# ── Request node ─────────────────────────────────────────────────────────────

class ChainedRequest(_ChainedNode):
    """Request-side settings at one level of the chain."""

    def __init__(self, parent: ChainedRequest | None = None) -> None:
        super().__init__(parent)
        self.content_type: str | None = None
        self.charset: str | None = None
        self.auth: Auth | None = None
        self._body: Body | None = None
        self.headers: dict[str, str] = {}
        self.cookies: list[Cookie] = []
        self.encoders: dict[str, Encoder] = {}

    @classmethod
    def root(cls, registry: CodecRegistry, charset: str | None = None) -> "ChainedRequest":
        node = cls()
        node.charset = charset or get_config().default_charset
        node.encoders.update(registry.encoder_map())
        return node

    def _freeze_collections(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        object.__setattr__(self, "cookies", tuple(self.cookies))
        object.__setattr__(self, "encoders", MappingProxyType(dict(self.encoders)))

    @property
    def body(self) -> Body | None:
        return self._body

    @body.setter
    def body(self, value: Any) -> None:
        self._body = classify(value)

    def cookie(self, name: str, value: str, domain: str | None = None,
               path: str | None = None, expires: str | None = None) -> None:
        self._check_mutable("cookies")
        self.cookies.append(Cookie(name, value, domain, path, expires))

    def set_encoder(self, content_types: str | Iterable[str], encoder: Encoder) -> None:
        self._check_mutable("encoders")
        for key in _keys(content_types):
            self.encoders[key] = encoder

    def encoder(self, content_type: str) -> Encoder | None:
        """Encoder registered at this level only."""
        return self.encoders.get(normalize_content_type(content_type) or "")

    # resolution

    def actual_charset(self) -> str | None:
        return first_non_null(self, self._parent_of, lambda n: n.charset)

    def actual_content_type(self) -> str | None:
        return first_non_null(self, self._parent_of, lambda n: n.content_type)

    def actual_body(self) -> Body | None:
        return first_non_null(self, self._parent_of, lambda n: n.body)

    def actual_headers(self, into: dict[str, str] | None = None) -> dict[str, str]:
        target = {} if into is None else into
        accumulate(self, self._parent_of, lambda n: n.headers, merge_absent(target))
        return target

    def actual_encoder(self, content_type: str) -> Encoder | None:
        return first_non_null(self, self._parent_of, lambda n: n.encoder(content_type))

    def actual_auth(self) -> Auth | None:
        return first_non_null(self, self._parent_of, lambda n: n.auth, _has_auth_kind)

    def actual_cookies(self, into: list[Cookie] | None = None) -> list[Cookie]:
        target = [] if into is None else into
        accumulate(self, self._parent_of, lambda n: n.cookies, extend(target))
        return target


# ── Response node ────────────────────────────────────────────────────────────

class ChainedResponse(_ChainedNode):
    """Response-side settings at one level of the chain."""

    def __init__(self, parent: ChainedResponse | None = None) -> None:
        super().__init__(parent)
        self.handlers: dict[int | str, StatusHandler] = {}
        self.parsers: dict[str, Parser] = {}

    @classmethod
    def root(cls, registry: CodecRegistry) -> "ChainedResponse":
        node = cls()
        node.parsers.update(registry.parser_map())
        node.handlers[_SUCCESS_KEY] = SUCCESS
        node.handlers[_FAILURE_KEY] = FAILURE
        return node

    def _freeze_collections(self) -> None:
        object.__setattr__(self, "handlers", MappingProxyType(dict(self.handlers)))
        object.__setattr__(self, "parsers", MappingProxyType(dict(self.parsers)))

    def when(
        self,
        code: int | Iterable[int],
        fn: Callable[..., Any] | StatusHandler,
        arity: HandlerArity = HandlerArity.HANDLE_AND_BODY,
    ) -> None:
        self._check_mutable("handlers")
        codes = (code,) if isinstance(code, int) else tuple(code)
        handler = as_handler(fn, arity)
        for each in codes:
            self.handlers[int(each)] = handler

    def success(self, fn: Callable[..., Any] | StatusHandler,
                arity: HandlerArity = HandlerArity.HANDLE_AND_BODY) -> None:
        self._check_mutable("handlers")
        self.handlers[_SUCCESS_KEY] = as_handler(fn, arity)

    def failure(self, fn: Callable[..., Any] | StatusHandler,
                arity: HandlerArity = HandlerArity.HANDLE_AND_BODY) -> None:
        self._check_mutable("handlers")
        self.handlers[_FAILURE_KEY] = as_handler(fn, arity)

    def set_parser(self, content_types: str | Iterable[str], parser: Parser) -> None:
        self._check_mutable("parsers")
        for key in _keys(content_types):
            self.parsers[key] = parser

    def parser(self, content_type: str) -> Parser | None:
        """Parser registered at this level only."""
        return self.parsers.get(normalize_content_type(content_type) or "")

    # resolution

    def actual_action(self, code: int) -> StatusHandler | None:
        return first_non_null(self, self._parent_of, lambda n: n.handlers.get(code))

    def actual_success(self) -> StatusHandler | None:
        return first_non_null(self, self._parent_of, lambda n: n.handlers.get(_SUCCESS_KEY))

    def actual_failure(self) -> StatusHandler | None:
        return first_non_null(self, self._parent_of, lambda n: n.handlers.get(_FAILURE_KEY))

    def actual_parser(self, content_type: str) -> Parser | None:
        return first_non_null(self, self._parent_of, lambda n: n.parser(content_type))


__sdk_export__ = {
    "exports": ["ChainedRequest", "ChainedResponse", "Auth", "AuthType", "Cookie"],
    "description": "Parent-linked request/response configuration nodes",
    "tier": "tier3_chain",
    "module": "nodes",
}
