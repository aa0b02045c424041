"""
chainhttp.tier0_core.errors
────────────────────────────
Standard error taxonomy for configuration resolution and payload codecs.
Every error raised by the core is a ChainHttpError, carries a stable
machine-readable code, and is surfaced to the immediate caller. Nothing
in the core logs-and-swallows these.
"""
from __future__ import annotations

from typing import Any, Iterable


# ── Base error ────────────────────────────────────────────────────────────────

class ChainHttpError(Exception):
    """
    Base class for all chainhttp errors. Every error has:
    - code: stable machine-readable string (snake_case)
    - detail: human readable description of what went wrong
    - metadata: extra keyword context for diagnostics
    """

    code: str = "chainhttp_error"

    def __init__(
        self,
        detail: str = "An unexpected error occurred.",
        *,
        code: str | None = None,
        **metadata: Any,
    ) -> None:
        self.code = code or self.__class__.code
        self.detail = detail
        self.metadata = metadata
        super().__init__(detail)

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "error": {
                "code": self.code,
                "message": self.detail,
            }
        }
        if self.metadata:
            d["error"]["metadata"] = dict(self.metadata)
        return d


# ── Typed error classes ───────────────────────────────────────────────────────

class ConfigurationError(ChainHttpError):
    """Resolution reached the root without finding a required value."""
    code = "configuration_error"


class NullBodyError(ChainHttpError):
    """An encoder was invoked without any effective body."""
    code = "null_body"

    def __init__(self, detail: str = "Effective body cannot be null", **metadata: Any) -> None:
        super().__init__(detail, **metadata)


class UnsupportedBodyTypeError(ChainHttpError):
    """Body is present but the selected codec cannot encode its kind."""
    code = "unsupported_body_type"

    def __init__(
        self,
        actual_type: str,
        accepted: Iterable[str],
        **metadata: Any,
    ) -> None:
        self.actual_type = actual_type
        self.accepted = tuple(accepted)
        detail = (
            f"Cannot encode bodies of type {actual_type}, "
            f"only bodies of: {', '.join(self.accepted)}"
        )
        super().__init__(detail, **metadata)


class TransferError(ChainHttpError):
    """Underlying I/O failed while streaming or transcoding a body."""
    code = "transfer_error"


class ParseError(ChainHttpError):
    """A structured parser (xml/html/json/form) met malformed input."""
    code = "parse_error"

    def __init__(
        self,
        detail: str = "Response body could not be parsed.",
        content_type: str | None = None,
        **metadata: Any,
    ) -> None:
        self.content_type = content_type
        super().__init__(detail, content_type=content_type, **metadata)


class HttpException(ChainHttpError):
    """Raised by the default failure handler for non-success responses."""
    code = "http_failure"

    def __init__(self, from_server: Any, body: Any = None) -> None:
        self.from_server = from_server
        self.body = body
        self.status_code = getattr(from_server, "status", None)
        super().__init__(
            f"Unexpected response status {self.status_code}",
            status=self.status_code,
        )


__sdk_export__ = {
    "exports": [
        "ChainHttpError", "ConfigurationError", "NullBodyError",
        "UnsupportedBodyTypeError", "TransferError", "ParseError",
        "HttpException",
    ],
    "description": "Error taxonomy for resolution and codec failures",
    "tier": "tier0_core",
    "module": "errors",
}
