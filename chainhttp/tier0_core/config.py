"""
chainhttp.tier0_core.config
────────────────────────────
Typed library settings with env layering. Reads from .env → environment
variables. All fields are typed via Pydantic and validated eagerly, so a bad
charset or buffer size fails at startup rather than mid-request.

Configure via: CHAINHTTP_DEFAULT_CHARSET, CHAINHTTP_TEXT_BUFFER_CAPACITY,
               CHAINHTTP_TRANSFER_CHUNK_SIZE, CHAINHTTP_REQUEST_TIMEOUT,
               CHAINHTTP_LOG_LEVEL, CHAINHTTP_LOG_FORMAT=json|console
"""
from __future__ import annotations

import codecs
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChainHttpSettings(BaseSettings):
    """
    Process-wide defaults for the codec core. Every env var is prefixed
    with CHAINHTTP_.
    """

    model_config = SettingsConfigDict(
        env_prefix="CHAINHTTP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Codecs ────────────────────────────────────────────────────────────────
    default_charset: str = Field(default="utf-8")
    text_buffer_capacity: int = Field(default=2048)
    transfer_chunk_size: int = Field(default=2048)

    # ── Client ────────────────────────────────────────────────────────────────
    request_timeout: float = Field(default=30.0)

    # ── Logging ───────────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    @field_validator("default_charset")
    @classmethod
    def validate_charset(cls, v: str) -> str:
        try:
            return codecs.lookup(v).name
        except LookupError as exc:
            raise ValueError(f"unknown charset {v!r}") from exc

    @field_validator("text_buffer_capacity", "transfer_chunk_size")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"must be > 0, got {v}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        allowed = {"json", "console"}
        if v.lower() not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got {v!r}")
        return v.lower()


@lru_cache(maxsize=1)
def get_config() -> ChainHttpSettings:
    """
    Return the singleton settings. Cached after first call.
    Call _reset_config() in tests to pick up new env vars.
    """
    return ChainHttpSettings()


def _reset_config() -> None:
    """For tests — clear the config cache."""
    get_config.cache_clear()


__sdk_export__ = {
    "exports": ["get_config", "ChainHttpSettings"],
    "description": "Typed settings for charset, buffer and transfer defaults",
    "tier": "tier0_core",
    "module": "config",
}
