"""
chainhttp.tier4_client.client
──────────────────────────────
Synchronous HTTP client that executes chained configuration over httpx.

Levels of the chain, root first:
  library defaults  — ChainedHttpConfig.root(registry), built once
  client            — ``client.config``, shared by every call
  verb              — ``client.verb("POST")``, one template per method
  call              — built per invocation, shaped by the ``configure`` hook

The codec core does all content negotiation; httpx only moves bytes.

Usage::

    with HttpClient("https://api.example.com") as client:
        client.config.chained_request.content_type = "application/json"
        user = client.post(
            "/users",
            lambda call: setattr(call.chained_request, "body", {"name": "ada"}),
        )
"""
from __future__ import annotations

import threading
from typing import Any, Callable

import httpx

from chainhttp.tier0_core.config import get_config
from chainhttp.tier0_core.errors import TransferError
from chainhttp.tier0_core.logging import get_logger
from chainhttp.tier0_core.redact import redact_headers
from chainhttp.tier1_runtime.buffer import TextBuffer
from chainhttp.tier1_runtime.context import end_context, new_context
from chainhttp.tier1_runtime.streams import BytesFromServer, CapturingToServer
from chainhttp.tier2_codecs.registry import CodecRegistry
from chainhttp.tier3_chain.negotiation import (
    ChainedHttpConfig,
    effective_auth,
    effective_charset,
    effective_content_type,
    effective_cookies,
    effective_headers,
)
from chainhttp.tier3_chain.nodes import Auth, AuthType, Cookie

logger = get_logger(__name__)

Configure = Callable[[ChainedHttpConfig], None]

_BINARY_PREFIXES = ("application/octet-stream", "image/", "audio/", "video/")


def _content_type_header(content_type: str, charset: str) -> str:
    if ";" in content_type or content_type.startswith(_BINARY_PREFIXES):
        return content_type
    return f"{content_type}; charset={charset}"


def _cookie_header(cookies: list[Cookie], existing: str | None) -> str | None:
    if not cookies:
        return existing
    pairs = "; ".join(f"{c.name}={c.value}" for c in cookies)
    return f"{existing}; {pairs}" if existing else pairs


def _httpx_auth(auth: Auth | None) -> httpx.Auth | None:
    if auth is None:
        return None
    if auth.auth_type is AuthType.BASIC:
        return httpx.BasicAuth(auth.user or "", auth.password or "")
    if auth.auth_type is AuthType.DIGEST:
        return httpx.DigestAuth(auth.user or "", auth.password or "")
    return None


class HttpClient:
    """
    Blocking client for one base URL.

    Pass ``transport`` (for example ``httpx.MockTransport``) to replace the
    network layer.
    """

    def __init__(
        self,
        base_url: str,
        *,
        config: ChainedHttpConfig | None = None,
        registry: CodecRegistry | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        defaults = config or ChainedHttpConfig.root(registry)
        self.config = defaults.child()
        self._verbs: dict[str, ChainedHttpConfig] = {}
        self._lock = threading.Lock()
        self._client = httpx.Client(
            timeout=timeout if timeout is not None else get_config().request_timeout,
            transport=transport,
        )

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def verb(self, method: str) -> ChainedHttpConfig:
        """Per-method template. The first call freezes ``self.config``."""
        method = method.upper()
        with self._lock:
            template = self._verbs.get(method)
            if template is None:
                template = self._verbs[method] = self.config.child()
            return template

    def get(self, path: str, configure: Configure | None = None) -> Any:
        return self.execute("GET", path, configure)

    def head(self, path: str, configure: Configure | None = None) -> Any:
        return self.execute("HEAD", path, configure)

    def post(self, path: str, configure: Configure | None = None) -> Any:
        return self.execute("POST", path, configure)

    def put(self, path: str, configure: Configure | None = None) -> Any:
        return self.execute("PUT", path, configure)

    def patch(self, path: str, configure: Configure | None = None) -> Any:
        return self.execute("PATCH", path, configure)

    def delete(self, path: str, configure: Configure | None = None) -> Any:
        return self.execute("DELETE", path, configure)

    def execute(self, method: str, path: str, configure: Configure | None = None) -> Any:
        """
        Encode, send, parse and dispatch one exchange. Returns whatever the
        effective status handler returns.
        """
        method = method.upper()
        call = self.verb(method).child()
        if configure is not None:
            configure(call)

        url = f"{self._base_url}/{path.lstrip('/')}" if path else self._base_url
        new_context(method=method, uri=url)
        try:
            return self._exchange(method, url, call)
        finally:
            end_context()

    def _exchange(self, method: str, url: str, call: ChainedHttpConfig) -> Any:
        request = call.chained_request
        sink = CapturingToServer()
        has_body = call.encode(sink)

        headers = effective_headers(request)
        if has_body and not any(name.lower() == "content-type" for name in headers):
            headers["Content-Type"] = _content_type_header(
                effective_content_type(request), effective_charset(request)
            )
        cookie_name = next((name for name in headers if name.lower() == "cookie"), "Cookie")
        cookie = _cookie_header(effective_cookies(request), headers.pop(cookie_name, None))
        if cookie:
            headers[cookie_name] = cookie

        logger.info(
            "client.request",
            headers=redact_headers(headers),
            body_bytes=len(sink.payload) if has_body else 0,
        )
        try:
            response = self._client.request(
                method,
                url,
                content=sink.payload if has_body else None,
                headers=headers,
                auth=_httpx_auth(effective_auth(request)),
            )
        except httpx.HTTPError as exc:
            raise TransferError(f"{method} {url} failed: {exc}", method=method, url=url) from exc

        logger.info(
            "client.response",
            status=response.status_code,
            content_type=response.headers.get("content-type"),
        )
        from_server = BytesFromServer(
            body=response.content,
            raw_content_type=response.headers.get("content-type"),
            status=response.status_code,
            headers=dict(response.headers),
            buffer=TextBuffer(),
        )
        return call.handle(from_server)


__sdk_export__ = {
    "exports": ["HttpClient"],
    "description": "httpx-backed client executing chained configuration",
    "tier": "tier4_client",
    "module": "client",
}
