"""Tests for tier3_chain modules."""
from __future__ import annotations

import io
import threading

import pytest

from chainhttp.tier0_core.errors import ConfigurationError, HttpException, TransferError
from chainhttp.tier1_runtime.body import BodyKind
from chainhttp.tier2_codecs import encoders, parsers
from chainhttp.tier3_chain.handlers import FAILURE, SUCCESS, HandlerArity, StatusHandler, as_handler
from chainhttp.tier3_chain.negotiation import (
    ChainedHttpConfig,
    effective_auth,
    effective_content_type,
    effective_cookies,
    effective_encoder,
    effective_headers,
    effective_parser,
    effective_status_handler,
)
from chainhttp.tier3_chain.nodes import Auth, AuthType, ChainedRequest, ChainedResponse, Cookie


# ── nodes ──────────────────────────────────────────────────────────────────

class TestChainedRequest:
    def test_root_holds_defaults(self, registry):
        root = ChainedRequest.root(registry)
        assert root.charset == "utf-8"
        assert root.encoder("application/json") is encoders.json
        assert root.depth() == 0

    def test_child_freezes_parent(self, registry):
        root = ChainedRequest.root(registry)
        child = root.child()
        assert root.frozen
        assert not child.frozen
        assert child.parent is root
        assert child.depth() == 1
        with pytest.raises(ConfigurationError):
            root.content_type = "text/plain"

    def test_frozen_collections_are_read_only(self, registry):
        root = ChainedRequest.root(registry)
        root.headers["X-A"] = "1"
        root.child()
        with pytest.raises(TypeError):
            root.headers["X-B"] = "2"
        with pytest.raises(ConfigurationError):
            root.cookie("a", "b")
        with pytest.raises(ConfigurationError):
            root.set_encoder("text/csv", encoders.text)

    def test_parent_type_checked(self, registry):
        with pytest.raises(TypeError):
            ChainedRequest(parent=ChainedResponse.root(registry))

    def test_body_is_classified_on_set(self):
        node = ChainedRequest()
        node.body = {"a": 1}
        assert node.body.kind is BodyKind.MAPPING
        node.body = None
        assert node.body is None

    def test_nearest_scalar_wins(self, registry):
        root = ChainedRequest.root(registry)
        root.content_type = "application/json"
        mid = root.child()
        leaf = mid.child()
        assert leaf.actual_content_type() == "application/json"
        assert leaf.actual_charset() == "utf-8"

        root2 = ChainedRequest.root(registry)
        root2.content_type = "application/json"
        mid2 = root2.child()
        mid2.content_type = "text/plain"
        assert mid2.child().actual_content_type() == "text/plain"

    def test_absent_everywhere(self):
        leaf = ChainedRequest().child()
        assert leaf.actual_body() is None
        assert leaf.actual_content_type() is None
        assert leaf.actual_auth() is None

    def test_encoder_lookup_walks_chain(self, registry):
        root = ChainedRequest.root(registry)
        mid = root.child()
        mid.set_encoder("text/csv", encoders.text)
        leaf = mid.child()
        assert leaf.actual_encoder("text/csv") is encoders.text
        assert leaf.actual_encoder("Application/JSON") is encoders.json
        assert leaf.actual_encoder("image/png") is None
        assert leaf.encoder("text/csv") is None

    def test_headers_nearest_descendant_wins(self, registry):
        root = ChainedRequest.root(registry)
        root.headers.update({"Accept": "*/*", "X-Root": "r"})
        leaf = root.child()
        leaf.headers["accept"] = "application/json"
        merged = leaf.actual_headers()
        assert merged == {"accept": "application/json", "X-Root": "r"}

    def test_cookies_accumulate_with_duplicates(self, registry):
        root = ChainedRequest.root(registry)
        root.cookie("session", "root")
        leaf = root.child()
        leaf.cookie("session", "leaf", domain="example.com")
        cookies = leaf.actual_cookies()
        assert [c.value for c in cookies] == ["leaf", "root"]
        assert cookies[0] == Cookie("session", "leaf", domain="example.com")

    def test_auth_without_kind_counts_as_unset(self, registry):
        root = ChainedRequest.root(registry)
        root.auth = Auth.basic("ada", "secret")
        leaf = root.child()
        leaf.auth = Auth(user="ignored")
        resolved = leaf.actual_auth()
        assert resolved.auth_type is AuthType.BASIC
        assert resolved.user == "ada"

    def test_auth_password_not_in_repr(self):
        assert "secret" not in repr(Auth.digest("ada", "secret"))


class TestChainedResponse:
    def test_root_defaults(self, registry):
        root = ChainedResponse.root(registry)
        assert root.actual_success() is SUCCESS
        assert root.actual_failure() is FAILURE
        assert root.parser("text/html") is parsers.html

    def test_when_registers_codes(self):
        node = ChainedResponse()
        node.when([401, 403], lambda: "denied", HandlerArity.NONE)
        assert node.actual_action(401)(None, None) == "denied"
        assert node.actual_action(403)(None, None) == "denied"
        assert node.actual_action(404) is None

    def test_child_action_overrides_parent(self):
        root = ChainedResponse()
        root.when(404, lambda: "root", HandlerArity.NONE)
        leaf = root.child()
        leaf.when(404, lambda: "leaf", HandlerArity.NONE)
        assert leaf.actual_action(404)(None, None) == "leaf"

    def test_parser_lookup_walks_chain(self, registry):
        root = ChainedResponse.root(registry)
        leaf = root.child()
        leaf.set_parser("text/csv", parsers.text_to_string)
        assert leaf.actual_parser("text/csv") is parsers.text_to_string
        assert leaf.actual_parser("application/json") is parsers.json
        assert root.actual_parser("text/csv") is None

    def test_frozen_response_rejects_changes(self, registry):
        root = ChainedResponse.root(registry)
        root.child()
        with pytest.raises(ConfigurationError):
            root.success(lambda: None, HandlerArity.NONE)
        with pytest.raises(ConfigurationError):
            root.set_parser("text/csv", parsers.text_to_string)


# ── handlers ───────────────────────────────────────────────────────────────

class TestHandlers:
    def test_arity_contract(self, from_server):
        handle = from_server(b"")
        assert StatusHandler(lambda: "none", HandlerArity.NONE)(handle, "body") == "none"
        assert StatusHandler(lambda fs: fs, HandlerArity.HANDLE)(handle, "body") is handle
        assert StatusHandler(lambda fs, body: body)(handle, "body") == "body"

    def test_as_handler_passes_handlers_through(self):
        handler = StatusHandler(lambda: None, HandlerArity.NONE)
        assert as_handler(handler) is handler
        assert as_handler(lambda fs: fs, 1).arity is HandlerArity.HANDLE

    def test_native_success_returns_body(self, from_server):
        assert SUCCESS(from_server(b""), {"a": 1}) == {"a": 1}

    def test_native_failure_raises(self, from_server):
        with pytest.raises(HttpException) as exc_info:
            FAILURE(from_server(b"", status=500), "boom")
        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "boom"


# ── negotiation ────────────────────────────────────────────────────────────

class TestNegotiation:
    def test_encoder_resolved_from_root_content_type(self, root_config, sink):
        root_config.chained_request.content_type = "application/json"
        call = root_config.child()
        call.chained_request.body = {"a": 1}

        assert call.find_encoder() is encoders.json
        assert call.encode(sink) is True
        assert sink.payload == b'{"a":1}'

    def test_headers_merged_across_levels(self, root_config):
        root_config.chained_request.headers["X"] = "1"
        call = root_config.child()
        call.chained_request.headers["Y"] = "2"
        assert effective_headers(call.chained_request) == {"Y": "2", "X": "1"}

    def test_unknown_content_type_returns_raw_bytes(self, root_config, from_server):
        call = root_config.child()
        handle = from_server(b"\x00opaque\xff", "text/unknown")
        assert call.find_parser("text/unknown") is parsers.stream_to_bytes
        assert call.handle(handle) == b"\x00opaque\xff"

    def test_missing_content_type_parses_as_bytes(self, root_config):
        assert effective_parser(root_config.chained_response, None) is parsers.stream_to_bytes

    def test_body_without_content_type(self, root_config):
        call = root_config.child()
        call.chained_request.body = "text"
        with pytest.raises(ConfigurationError, match="content type is undefined"):
            effective_content_type(call.chained_request)

    def test_no_body_no_content_type_is_fine(self, root_config, sink):
        call = root_config.child()
        assert call.find_content_type() is None
        assert call.encode(sink) is False
        assert not sink.delivered

    def test_no_encoder_for_content_type(self, root_config):
        root_config.chained_request.content_type = "image/png"
        call = root_config.child()
        call.chained_request.body = b"\x89PNG"
        with pytest.raises(ConfigurationError, match="Did not find encoder"):
            effective_encoder(call.chained_request)

    def test_content_type_parameters_ignored_for_lookup(self, root_config, sink):
        root_config.chained_request.content_type = "text/plain; charset=utf-8"
        call = root_config.child()
        call.chained_request.body = "hi"
        call.encode(sink)
        assert sink.payload == b"hi"

    def test_form_body_survives_encode_and_parse(self, root_config, sink, from_server):
        root_config.chained_request.content_type = "application/x-www-form-urlencoded"
        call = root_config.child()
        call.chained_request.body = {"tag": ["a", "b"], "naïve key": "x&y=z w", "城市": "東京"}
        call.encode(sink)

        parsed = parsers.form(from_server(sink.payload, "application/x-www-form-urlencoded"))
        assert parsed == {"tag": ["a", "b"], "naïve key": ["x&y=z w"], "城市": ["東京"]}

    def test_json_body_survives_encode_and_parse(self, root_config, sink, from_server):
        body = {"a": {"b": [1, 2.5, True, None]}, "s": "é", "n": -0.125, "empty": []}
        root_config.chained_request.content_type = "application/json"
        call = root_config.child()
        call.chained_request.body = body
        call.encode(sink)

        assert parsers.json(from_server(sink.payload, "application/json")) == body

    def test_unencodable_text_stream_is_transfer_error(self, root_config, sink):
        root_config.chained_request.content_type = "text/plain"
        call = root_config.child()
        call.chained_request.charset = "ascii"
        call.chained_request.body = io.StringIO("Jürgen")
        with pytest.raises(TransferError, match="ascii"):
            call.encode(sink)

    def test_status_handler_precedence(self, root_config, from_server):
        root_config.chained_response.when(404, lambda: "not found", HandlerArity.NONE)
        call = root_config.child()
        call.chained_response.success(lambda fs, body: ("ok", body))

        assert call.find_status_handler(404)(from_server(b""), None) == "not found"
        assert call.find_status_handler(204)(from_server(b""), "b") == ("ok", "b")
        assert effective_status_handler(call.chained_response, 500) is FAILURE

    def test_handlers_fall_back_without_root_defaults(self):
        bare = ChainedResponse().child()
        assert effective_status_handler(bare, 200) is SUCCESS
        assert effective_status_handler(bare, 418) is FAILURE

    def test_handle_parses_then_dispatches(self, root_config, from_server):
        call = root_config.child()
        assert call.handle(from_server(b'{"a":1}', "application/json")) == {"a": 1}

    def test_handle_failure_carries_parsed_body(self, root_config, from_server):
        call = root_config.child()
        with pytest.raises(HttpException) as exc_info:
            call.handle(from_server(b'{"error":"nope"}', "application/json", status=422))
        assert exc_info.value.body == {"error": "nope"}

    def test_cookies_and_auth(self, root_config):
        root_config.chained_request.auth = Auth.basic("ada", "pw")
        root_config.chained_request.cookie("a", "1")
        call = root_config.child()
        call.chained_request.cookie("b", "2")
        assert [c.name for c in effective_cookies(call.chained_request)] == ["b", "a"]
        assert effective_auth(call.chained_request).user == "ada"

    def test_config_child_links_levels(self, root_config):
        call = root_config.child()
        assert call.parent is root_config
        assert call.chained_request.parent is root_config.chained_request
        assert call.chained_response.parent is root_config.chained_response

    def test_shared_ancestors_resolve_concurrently(self, root_config):
        root_config.chained_request.content_type = "application/json"
        verb = root_config.child()
        verb.chained_request.headers["X-Verb"] = "post"
        verb.chained_request.freeze()
        verb.chained_response.freeze()
        results: list[bytes] = []
        lock = threading.Lock()

        def run(n: int) -> None:
            from chainhttp.tier1_runtime.streams import CapturingToServer

            call = verb.child()
            call.chained_request.body = {"n": n}
            out = CapturingToServer()
            call.encode(out)
            with lock:
                results.append(out.payload)

        threads = [threading.Thread(target=run, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert sorted(results) == sorted(f'{{"n":{n}}}'.encode() for n in range(8))

    def test_root_without_registry_uses_builtins(self):
        config = ChainedHttpConfig.root()
        assert config.chained_request.encoder("application/json") is encoders.json
