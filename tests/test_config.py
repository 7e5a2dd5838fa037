"""Tests for configuration loading."""

from __future__ import annotations

import base64
from pathlib import Path

import pytest
from pydantic import ValidationError

from flyteauth.core.config import AppSettings, CookieSettings, load_app_settings


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    """Ensure each test sees a fresh settings instance."""

    load_app_settings.cache_clear()


def test_defaults_loaded_without_env_file() -> None:
    """Default values should be returned when no overrides are present."""

    settings = load_app_settings(include_environment=False)
    assert settings.cookies.hash_key is None
    assert settings.cookies.session_max_age == 86400
    assert settings.cookies.csrf_max_age == 3600
    assert settings.oauth.redirect_url == "/"


def test_env_file_overrides(tmp_path: Path) -> None:
    """Values defined in an env file should override defaults."""

    env_file = tmp_path / "test.env"
    env_file.write_text(
        "FLYTEAUTH_OAUTH__REDIRECT_URL=/api/v1/projects\n"
        "FLYTEAUTH_COOKIES__SECURE=true\n",
        encoding="utf-8",
    )

    settings = load_app_settings(env_file=env_file, include_environment=False)
    assert settings.oauth.redirect_url == "/api/v1/projects"
    assert settings.cookies.secure is True


def test_environment_overrides_env_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / "test.env"
    env_file.write_text("FLYTEAUTH_OAUTH__REDIRECT_URL=/from-file\n", encoding="utf-8")
    monkeypatch.setenv("FLYTEAUTH_OAUTH__REDIRECT_URL", "/from-env")

    settings = load_app_settings(env_file=env_file)
    assert settings.oauth.redirect_url == "/from-env"


def test_cookie_keys_decode_padded_and_unpadded() -> None:
    hash_key = bytes(range(64))
    block_key = bytes(range(32))
    settings = CookieSettings(
        hash_key=base64.b64encode(hash_key).decode("ascii").rstrip("="),
        block_key=base64.urlsafe_b64encode(block_key).decode("ascii"),
    )

    assert settings.hash_key_bytes() == hash_key
    assert settings.block_key_bytes() == block_key


def test_invalid_key_is_rejected() -> None:
    with pytest.raises(ValidationError):
        AppSettings.model_validate({"cookies": {"hash_key": "not base64!"}})
