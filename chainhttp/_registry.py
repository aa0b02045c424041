"""
chainhttp._registry
────────────────────
Internal module registry — the single source of truth for which modules
exist and what each one exports.

Adding a new module:
  1. Implement it in the right tier
  2. Add ``__sdk_export__`` to the module (exports, description, tier, module)
  3. Add one tuple to TIER_MODULES below
"""
from __future__ import annotations

import importlib
from typing import Any

# ---------------------------------------------------------------------------
# Ordered list of (tier_path, module_name), lowest tier first. A module may
# only import from its own tier or a lower one.
# ---------------------------------------------------------------------------
TIER_MODULES: list[tuple[str, str]] = [
    # tier0_core — errors, settings, logging, protocol constants
    ("tier0_core", "errors"),
    ("tier0_core", "config"),
    ("tier0_core", "logging"),
    ("tier0_core", "http"),
    ("tier0_core", "redact"),
    # tier1_runtime — chain walking, buffers, body kinds, format helpers
    ("tier1_runtime", "traverse"),
    ("tier1_runtime", "buffer"),
    ("tier1_runtime", "body"),
    ("tier1_runtime", "streams"),
    ("tier1_runtime", "form"),
    ("tier1_runtime", "markup"),
    ("tier1_runtime", "serialize"),
    ("tier1_runtime", "context"),
    # tier2_codecs — encoders, parsers and their registry
    ("tier2_codecs", "encoders"),
    ("tier2_codecs", "parsers"),
    # tier3_chain — configuration nodes and negotiation
    ("tier3_chain", "handlers"),
    ("tier3_chain", "nodes"),
    ("tier3_chain", "negotiation"),
    # tier4_client — transport adapters
    ("tier4_client", "client"),
]


def collect_exports() -> dict[str, dict[str, Any]]:
    """
    Import every module in ``TIER_MODULES`` and return its
    ``__sdk_export__`` metadata keyed by ``"tier.module"``.

    An import failure propagates: every listed module must import cleanly.
    """
    exports: dict[str, dict[str, Any]] = {}
    for tier_path, module_name in TIER_MODULES:
        mod = importlib.import_module(f"chainhttp.{tier_path}.{module_name}")
        meta: dict[str, Any] | None = getattr(mod, "__sdk_export__", None)
        if meta:
            exports[f"{tier_path}.{module_name}"] = meta
    return exports
