"""
chainhttp.tier0_core.http
──────────────────────────
HTTP primitives shared by every tier: standard status codes, the
success/failure split used to route responses to default handlers, and the
content types the built-in codecs are registered under.
"""
from __future__ import annotations


# ── Status code constants ──────────────────────────────────────────────────

class HTTP:
    """Standard HTTP status codes."""

    # 1xx
    CONTINUE = 100

    # 2xx
    OK = 200
    CREATED = 201
    ACCEPTED = 202
    NO_CONTENT = 204

    # 3xx
    MOVED_PERMANENTLY = 301
    FOUND = 302
    NOT_MODIFIED = 304

    # 4xx
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    CONFLICT = 409
    UNSUPPORTED_MEDIA_TYPE = 415
    TOO_MANY_REQUESTS = 429

    # 5xx
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503


SUCCESS = range(100, 400)
FAILURE = range(400, 600)


def is_success(code: int) -> bool:
    """True for 1xx–3xx, which route to the success handler by default."""
    return code in SUCCESS


# ── Content types ──────────────────────────────────────────────────────────

class ContentTypes:
    """Content types the built-in codecs are keyed under."""

    ANY = ("*/*",)
    BINARY = ("application/octet-stream",)
    TEXT = ("text/plain",)
    URLENC = ("application/x-www-form-urlencoded",)
    XML = (
        "application/xml",
        "text/xml",
        "application/xhtml+xml",
        "application/atom+xml",
    )
    HTML = ("text/html",)
    JSON = (
        "application/json",
        "application/javascript",
        "text/javascript",
    )


def normalize_content_type(content_type: str | None) -> str | None:
    """
    Drop parameters and case from a content type so that
    ``"Application/JSON; charset=utf-8"`` looks up as ``"application/json"``.
    """
    if content_type is None:
        return None
    base = content_type.split(";", 1)[0].strip().lower()
    return base or None


def charset_of(content_type: str | None) -> str | None:
    """Extract the ``charset`` parameter from a Content-Type header value."""
    if not content_type:
        return None
    for param in content_type.split(";")[1:]:
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset":
            return value.strip().strip('"') or None
    return None


__sdk_export__ = {
    "exports": ["HTTP", "ContentTypes", "is_success"],
    "description": "Status codes and content type constants",
    "tier": "tier0_core",
    "module": "http",
}
