"""
chainhttp test configuration.

Tests never touch the network: the client tests use httpx.MockTransport and
everything below tier4 works on in-memory sinks and handles.
"""
from __future__ import annotations

import os

import pytest

# ── Quiet, deterministic settings ─────────────────────────────────────────
# These must be set before any chainhttp modules are imported.

os.environ.setdefault("CHAINHTTP_LOG_LEVEL", "WARNING")
os.environ.setdefault("CHAINHTTP_LOG_FORMAT", "json")
os.environ.setdefault("CHAINHTTP_DEFAULT_CHARSET", "utf-8")


# ── Fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_settings():
    """Drop cached settings so monkeypatched env vars apply per test."""
    from chainhttp.tier0_core.config import _reset_config

    _reset_config()
    yield
    _reset_config()


@pytest.fixture
def registry():
    """A fresh registry holding the built-in codecs."""
    from chainhttp.tier2_codecs.registry import default_registry
    return default_registry()


@pytest.fixture
def root_config(registry):
    """Library-level defaults built from the ``registry`` fixture."""
    from chainhttp.tier3_chain.negotiation import ChainedHttpConfig
    return ChainedHttpConfig.root(registry)


@pytest.fixture
def from_server():
    """Factory for in-memory response handles."""
    from chainhttp.tier1_runtime.streams import BytesFromServer

    def _make(body=b"", content_type=None, status=200, headers=None, charset=None):
        return BytesFromServer(
            body=body,
            raw_content_type=content_type,
            status=status,
            headers=headers or {},
            explicit_charset=charset,
        )

    return _make


@pytest.fixture
def sink():
    from chainhttp.tier1_runtime.streams import CapturingToServer
    return CapturingToServer()
