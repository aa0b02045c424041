"""
chainhttp.tier0_core.redact
────────────────────────────
Credential masking for what the client logs. Effective headers routinely
carry Authorization, Proxy-Authorization, API keys and cookies; the request
log line only ever sees them after they pass through ``redact_headers``, and
the structlog pipeline masks the same names wherever they turn up as event
keys.

Cookie headers keep their cookie names and lose their values, so a log
still shows which cookies were sent.
"""
from __future__ import annotations

import re
from typing import Any, Mapping

REDACTED = "[REDACTED]"

# ── Header names (compared lower-cased) ────────────────────────────────────

CREDENTIAL_HEADERS: frozenset[str] = frozenset({
    "authorization",
    "proxy-authorization",
    "x-api-key",
    "x-auth-token",
    "x-csrf-token",
})

COOKIE_HEADERS: frozenset[str] = frozenset({"cookie", "set-cookie"})

# Event keys masked outright by the structlog processor.
_EVENT_KEYS: frozenset[str] = CREDENTIAL_HEADERS | COOKIE_HEADERS | {"password"}

# Credentials pasted into free text, e.g. an echoed header in an error message.
_AUTH_SCHEME = re.compile(r"\b(Basic|Bearer|Digest)\s+\S.*", re.I)


# ── Public API ─────────────────────────────────────────────────────────────

def scrub_credentials(text: str) -> str:
    """Mask whatever follows a Basic, Bearer or Digest scheme name."""
    return _AUTH_SCHEME.sub(lambda m: f"{m.group(1)} {REDACTED}", text)


def mask_cookies(value: str) -> str:
    """``"a=1; b=2"`` → ``"a=[REDACTED]; b=[REDACTED]"``."""
    masked = []
    for pair in value.split(";"):
        name, sep, _ = pair.strip().partition("=")
        masked.append(f"{name}={REDACTED}" if sep else name)
    return "; ".join(masked)


def redact_headers(headers: Mapping[str, Any]) -> dict[str, str]:
    """Copy of *headers* that is safe to log."""
    safe: dict[str, str] = {}
    for name, value in headers.items():
        folded = name.lower()
        if folded in CREDENTIAL_HEADERS:
            safe[name] = REDACTED
        elif folded in COOKIE_HEADERS:
            safe[name] = mask_cookies(str(value))
        else:
            safe[name] = scrub_credentials(str(value))
    return safe


def structlog_redact_processor(
    logger: Any,
    method: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    structlog processor: header mappings are passed through
    ``redact_headers``, credential-named keys are replaced and plain
    strings are scrubbed. Runs before rendering.
    """
    for key, value in list(event_dict.items()):
        if key.lower() in _EVENT_KEYS:
            event_dict[key] = REDACTED
        elif key == "headers" and isinstance(value, Mapping):
            event_dict[key] = redact_headers(value)
        elif isinstance(value, str):
            event_dict[key] = scrub_credentials(value)
    return event_dict


__all__ = [
    "REDACTED",
    "CREDENTIAL_HEADERS",
    "COOKIE_HEADERS",
    "redact_headers",
    "mask_cookies",
    "scrub_credentials",
    "structlog_redact_processor",
]
