"""
chainhttp.tier1_runtime.context
────────────────────────────────
Exchange context — correlation id and request coordinates for the
request/response cycle currently executing, propagated into every log line
via structlog contextvars.

Uses Python contextvars, so concurrently running exchanges on different
threads or tasks never see each other's context.
"""
from __future__ import annotations

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

import structlog


# ── Domain model ─────────────────────────────────────────────────────────────

@dataclass
class ExchangeContext:
    """Per-exchange metadata available while a request is in flight."""
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    method: str | None = None
    uri: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


# ── ContextVar storage ────────────────────────────────────────────────────────

_ctx: ContextVar[ExchangeContext | None] = ContextVar(
    "chainhttp_exchange_context",
    default=None,
)


# ── Public API ────────────────────────────────────────────────────────────────

def get_context() -> ExchangeContext | None:
    """Return the exchange context of the current thread/task, if any."""
    return _ctx.get()


def set_context(ctx: ExchangeContext) -> None:
    """Activate *ctx* for the current scope and bind it into log context."""
    _ctx.set(ctx)
    structlog.contextvars.bind_contextvars(
        request_id=ctx.request_id,
        method=ctx.method,
        uri=ctx.uri,
    )


def new_context(method: str | None = None, uri: str | None = None, **metadata: Any) -> ExchangeContext:
    """Create and activate a new exchange context. Returns the new context."""
    ctx = ExchangeContext(method=method, uri=uri, metadata=metadata)
    set_context(ctx)
    return ctx


def end_context() -> None:
    """Drop the active exchange context and its log bindings."""
    _ctx.set(None)
    structlog.contextvars.unbind_contextvars("request_id", "method", "uri")


__sdk_export__ = {
    "exports": ["ExchangeContext", "get_context", "new_context"],
    "description": "Exchange context via contextvars (request_id, method, uri)",
    "tier": "tier1_runtime",
    "module": "context",
}
