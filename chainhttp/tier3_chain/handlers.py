"""
chainhttp.tier3_chain.handlers
───────────────────────────────
Per-status response handlers. A handler is a function plus a declared
arity, so it is called the same way every time:

  NONE             fn()
  HANDLE           fn(from_server)
  HANDLE_AND_BODY  fn(from_server, parsed_body)
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable

from chainhttp.tier0_core.errors import HttpException
from chainhttp.tier1_runtime.streams import FromServer


class HandlerArity(IntEnum):
    NONE = 0
    HANDLE = 1
    HANDLE_AND_BODY = 2


@dataclass(frozen=True)
class StatusHandler:
    fn: Callable[..., Any]
    arity: HandlerArity = HandlerArity.HANDLE_AND_BODY

    def __call__(self, from_server: FromServer, body: Any) -> Any:
        if self.arity == HandlerArity.NONE:
            return self.fn()
        if self.arity == HandlerArity.HANDLE:
            return self.fn(from_server)
        return self.fn(from_server, body)


def as_handler(
    fn: Callable[..., Any] | StatusHandler,
    arity: HandlerArity = HandlerArity.HANDLE_AND_BODY,
) -> StatusHandler:
    if isinstance(fn, StatusHandler):
        return fn
    return StatusHandler(fn, HandlerArity(arity))


# ── Native handlers ──────────────────────────────────────────────────────────

def success(from_server: FromServer, body: Any) -> Any:
    """Default success handler: the parsed body is the result."""
    return body


def failure(from_server: FromServer, body: Any) -> Any:
    """Default failure handler: raise with the handle and whatever was parsed."""
    raise HttpException(from_server, body)


SUCCESS = StatusHandler(success)
FAILURE = StatusHandler(failure)


__sdk_export__ = {
    "exports": ["StatusHandler", "HandlerArity"],
    "description": "Status handlers with an explicit arity contract",
    "tier": "tier3_chain",
    "module": "handlers",
}
