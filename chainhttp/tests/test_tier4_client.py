"""Tests for tier4_client modules."""
from __future__ import annotations

import httpx
import pytest

from chainhttp.tier0_core.errors import ConfigurationError, HttpException, TransferError
from chainhttp.tier1_runtime.context import get_context
from chainhttp.tier3_chain.handlers import HandlerArity
from chainhttp.tier3_chain.nodes import Auth
from chainhttp.tier4_client.client import HttpClient

BASE = "https://api.test"


class Recorder:
    """httpx MockTransport handler that records requests and replays one response."""

    def __init__(self, response: httpx.Response | None = None) -> None:
        self.response = response or httpx.Response(200, json={"ok": True})
        self.requests: list[httpx.Request] = []
        self.contexts: list = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.contexts.append(get_context())
        return self.response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make_client(recorder: Recorder, **kwargs) -> HttpClient:
    return HttpClient(BASE, transport=httpx.MockTransport(recorder), **kwargs)


def set_body(value):
    def _configure(call):
        call.chained_request.body = value
    return _configure


# ── HttpClient ─────────────────────────────────────────────────────────────

class TestHttpClient:
    def test_post_json_round_trip(self):
        recorder = Recorder()
        with make_client(recorder) as client:
            client.config.chained_request.content_type = "application/json"
            result = client.post("/users", set_body({"name": "ada"}))

        assert result == {"ok": True}
        request = recorder.last
        assert request.method == "POST"
        assert str(request.url) == f"{BASE}/users"
        assert request.content == b'{"name":"ada"}'
        assert request.headers["content-type"] == "application/json; charset=utf-8"

    def test_get_without_body_sends_no_content_type(self):
        recorder = Recorder()
        with make_client(recorder) as client:
            client.get("items")
        assert recorder.last.content == b""
        assert "content-type" not in recorder.last.headers

    def test_explicit_content_type_header_kept(self):
        recorder = Recorder()
        with make_client(recorder) as client:
            client.config.chained_request.content_type = "application/json"

            def configure(call):
                call.chained_request.body = [1, 2]
                call.chained_request.headers["Content-Type"] = "application/vnd.api+json"

            client.put("/things/1", configure)
        assert recorder.last.headers["content-type"] == "application/vnd.api+json"
        assert recorder.last.content == b"[1,2]"

    def test_headers_and_cookies_from_every_level(self):
        recorder = Recorder()
        with make_client(recorder) as client:
            client.config.chained_request.headers["X-Client"] = "c"
            client.config.chained_request.cookie("theme", "dark")
            client.verb("GET").chained_request.headers["X-Verb"] = "v"

            def configure(call):
                call.chained_request.headers["X-Call"] = "k"
                call.chained_request.cookie("session", "abc")

            client.get("/me", configure)

        headers = recorder.last.headers
        assert headers["x-client"] == "c"
        assert headers["x-verb"] == "v"
        assert headers["x-call"] == "k"
        assert headers["cookie"] == "session=abc; theme=dark"

    def test_basic_auth(self):
        recorder = Recorder()
        with make_client(recorder) as client:
            client.config.chained_request.auth = Auth.basic("ada", "pw")
            client.get("/private")
        assert recorder.last.headers["authorization"].startswith("Basic ")

    def test_failure_status_raises_with_parsed_body(self):
        recorder = Recorder(httpx.Response(404, json={"error": "missing"}))
        with make_client(recorder) as client:
            with pytest.raises(HttpException) as exc_info:
                client.get("/nope")
        assert exc_info.value.status_code == 404
        assert exc_info.value.body == {"error": "missing"}

    def test_status_handler_on_verb_template(self):
        recorder = Recorder(httpx.Response(404, text="gone"))
        with make_client(recorder) as client:
            client.verb("DELETE").chained_response.when(404, lambda: "already gone", HandlerArity.NONE)
            assert client.delete("/x") == "already gone"

    def test_text_response_uses_declared_charset(self):
        response = httpx.Response(
            200,
            content="héllo".encode("latin-1"),
            headers={"content-type": "text/plain; charset=ISO-8859-1"},
        )
        with make_client(Recorder(response)) as client:
            assert client.get("/greeting") == "héllo"

    def test_unknown_response_type_is_raw_bytes(self):
        response = httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png"})
        with make_client(Recorder(response)) as client:
            assert client.get("/logo.png") == b"\x89PNG"

    def test_transport_error_becomes_transfer_error(self):
        def boom(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with HttpClient(BASE, transport=httpx.MockTransport(boom)) as client:
            with pytest.raises(TransferError):
                client.get("/")
        assert get_context() is None

    def test_exchange_context_active_during_call(self):
        recorder = Recorder()
        with make_client(recorder) as client:
            client.patch("/p")
        ctx = recorder.contexts[-1]
        assert ctx.method == "PATCH"
        assert ctx.uri == f"{BASE}/p"
        assert get_context() is None

    def test_client_config_frozen_after_first_call(self):
        with make_client(Recorder()) as client:
            client.get("/")
            with pytest.raises(ConfigurationError):
                client.config.chained_request.content_type = "text/plain"

    def test_verb_templates_are_reused(self):
        with make_client(Recorder()) as client:
            assert client.verb("post") is client.verb("POST")
            assert client.verb("GET") is not client.verb("POST")

    def test_missing_content_type_with_body(self):
        recorder = Recorder()
        with make_client(recorder) as client:
            with pytest.raises(ConfigurationError):
                client.post("/x", set_body({"a": 1}))
        assert recorder.requests == []

    def test_timeout_from_settings(self, monkeypatch):
        from chainhttp.tier0_core.config import _reset_config

        monkeypatch.setenv("CHAINHTTP_REQUEST_TIMEOUT", "5")
        _reset_config()
        client = make_client(Recorder())
        try:
            assert client._client.timeout.connect == 5.0
        finally:
            client.close()
