"""Application configuration models and loader utilities."""

from __future__ import annotations

import base64
import binascii
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import BaseModel, Field, field_validator


def decode_key(value: str) -> bytes:
    """Decode a base64 key, accepting standard or URL-safe alphabets with or without padding."""
    text = value.strip()
    padded = text + "=" * (-len(text) % 4)
    altchars = b"-_" if ("-" in text or "_" in text) else None
    try:
        return base64.b64decode(padded, altchars=altchars, validate=True)
    except (binascii.Error, ValueError) as exc:
        msg = "Key is not valid base64"
        raise ValueError(msg) from exc


class CookieSettings(BaseModel):
    """Settings controlling secure cookie keys and lifetimes."""

    hash_key: str | None = Field(
        default=None, description="Base64 HMAC key, at least 32 bytes decoded"
    )
    block_key: str | None = Field(
        default=None, description="Base64 AES key (16, 24 or 32 bytes decoded)"
    )
    secure: bool = Field(
        default=False, description="Mark issued cookies as HTTPS-only"
    )
    session_max_age: int = Field(
        default=86400, ge=1, description="Lifetime of token cookies in seconds"
    )
    csrf_max_age: int = Field(
        default=3600, ge=1, description="Lifetime of the CSRF state cookie"
    )
    redirect_max_age: int = Field(
        default=3600, ge=1, description="Lifetime of the post-login redirect cookie"
    )
    max_length: int = Field(
        default=4096, ge=0, description="Upper bound for encoded cookie values"
    )

    @field_validator("hash_key", "block_key")
    @classmethod
    def _validate_base64(cls, value: str | None) -> str | None:
        if value is None:
            return None
        decode_key(value)
        return value.strip()

    def hash_key_bytes(self) -> bytes | None:
        """Return the decoded HMAC key, if configured."""
        return decode_key(self.hash_key) if self.hash_key else None

    def block_key_bytes(self) -> bytes | None:
        """Return the decoded encryption key, if configured."""
        return decode_key(self.block_key) if self.block_key else None


class OAuthOptions(BaseModel):
    """Options the host authentication context exposes to the cookie flow."""

    redirect_url: str = Field(
        default="/", description="Default post-login destination"
    )
    authorize_url: str | None = Field(
        default=None,
        description="Provider authorization endpoint the login handler forwards to",
    )


class LoggingSettings(BaseModel):
    """Logging preferences."""

    level: str = Field(default="INFO", description="Root logging level")
    structured: bool = Field(
        default=False, description="Toggle key=value structured logging"
    )


class AppSettings(BaseModel):
    """Aggregated application configuration."""

    cookies: CookieSettings = Field(default_factory=CookieSettings)
    oauth: OAuthOptions = Field(default_factory=OAuthOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


ENV_PREFIX = "FLYTEAUTH_"


def _normalize_key(raw_key: str) -> list[str]:
    """Convert an environment variable key into a nested attribute path."""
    trimmed = raw_key.removeprefix(ENV_PREFIX)
    return [segment.lower() for segment in trimmed.split("__") if segment]


def _merge_into_tree(tree: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a value to a nested dictionary given a path."""
    cursor = tree
    for segment in path[:-1]:
        next_node = cursor.setdefault(segment, {})
        cursor = cast(dict[str, Any], next_node)
    cursor[path[-1]] = value


def _collect_env_values(
    env_file: Path | str | None, *, include_environment: bool = True
) -> dict[str, Any]:
    """Load configuration values from environment variables and optional file."""
    collected: dict[str, Any] = {}

    file_values = {}
    if env_file:
        env_path = Path(env_file)
        if env_path.is_file():
            file_values = {
                key: value
                for key, value in dotenv_values(env_path).items()
                if key and key.startswith(ENV_PREFIX)
            }

    env_values = {}
    if include_environment:
        env_values = {
            key: value
            for key, value in os.environ.items()
            if key.startswith(ENV_PREFIX)
        }

    combined: dict[str, Any] = {**file_values, **env_values}

    for key, value in combined.items():
        path = _normalize_key(key)
        if not path:
            continue
        normalized_value: Any = value
        if isinstance(value, str) and value == "":
            normalized_value = None
        elif isinstance(value, str):
            lowercase_value = value.lower()
            if lowercase_value == "true":
                normalized_value = True
            elif lowercase_value == "false":
                normalized_value = False
        _merge_into_tree(collected, path, normalized_value)

    return collected


@lru_cache(maxsize=1)
def load_app_settings(
    env_file: Path | str | None = None,
    include_environment: bool = True,
    **overrides: Any,
) -> AppSettings:
    """Load application settings, applying env files and overrides."""
    collected = _collect_env_values(env_file, include_environment=include_environment)
    if overrides:
        collected.update(overrides)
    return AppSettings.model_validate(collected)


__all__ = [
    "AppSettings",
    "CookieSettings",
    "ENV_PREFIX",
    "LoggingSettings",
    "OAuthOptions",
    "decode_key",
    "load_app_settings",
]
