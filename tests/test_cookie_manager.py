"""Tests for token cookie persistence."""

from __future__ import annotations

import base64
from http.cookies import SimpleCookie

import pytest
from starlette.responses import Response

from flyteauth.core.config import CookieSettings
from flyteauth.core.models import TokenSet
from flyteauth.cookies.manager import (
    ACCESS_TOKEN_COOKIE_NAME,
    AUTH_COOKIE_NAMES,
    ID_TOKEN_COOKIE_NAME,
    REFRESH_TOKEN_COOKIE_NAME,
    CookieManager,
)
from flyteauth.cookies.secure import EncodingError, VerificationError


@pytest.fixture()
def settings() -> CookieSettings:
    return CookieSettings(
        hash_key=base64.b64encode(bytes(range(64))).decode("ascii"),
        block_key=base64.b64encode(bytes(range(32))).decode("ascii"),
        secure=True,
        session_max_age=600,
    )


def _set_cookies(response: Response) -> SimpleCookie:
    jar: SimpleCookie = SimpleCookie()
    for header in response.headers.getlist("set-cookie"):
        jar.load(header)
    return jar


def test_token_cookies_round_trip(settings: CookieSettings) -> None:
    manager = CookieManager.from_settings(settings)
    response = Response()
    tokens = TokenSet(access_token="access", refresh_token="refresh", id_token="idt")

    manager.set_token_cookies(response, tokens)
    jar = _set_cookies(response)

    assert set(jar) == {ACCESS_TOKEN_COOKIE_NAME, REFRESH_TOKEN_COOKIE_NAME, ID_TOKEN_COOKIE_NAME}
    access = jar[ACCESS_TOKEN_COOKIE_NAME]
    assert access.value != "access"
    assert access["httponly"]
    assert access["secure"]
    assert access["max-age"] == "600"

    cookies = {name: morsel.value for name, morsel in jar.items()}
    assert manager.retrieve_token_values(cookies) == tokens


def test_optional_tokens_are_skipped(settings: CookieSettings) -> None:
    manager = CookieManager.from_settings(settings)
    response = Response()

    manager.set_token_cookies(response, TokenSet(access_token="access"))
    jar = _set_cookies(response)

    assert set(jar) == {ACCESS_TOKEN_COOKIE_NAME}
    tokens = manager.retrieve_token_values({ACCESS_TOKEN_COOKIE_NAME: jar[ACCESS_TOKEN_COOKIE_NAME].value})
    assert tokens == TokenSet(access_token="access")


def test_missing_access_cookie_means_no_session(settings: CookieSettings) -> None:
    manager = CookieManager.from_settings(settings)
    assert manager.retrieve_token_values({}) is None


def test_tampered_cookie_propagates_error(settings: CookieSettings) -> None:
    manager = CookieManager.from_settings(settings)
    with pytest.raises(VerificationError):
        manager.retrieve_token_values({ACCESS_TOKEN_COOKIE_NAME: "forged"})


def test_delete_cookies_expires_everything(settings: CookieSettings) -> None:
    manager = CookieManager.from_settings(settings)
    response = Response()

    manager.delete_cookies(response)
    jar = _set_cookies(response)

    assert set(jar) == set(AUTH_COOKIE_NAMES)
    assert all(morsel["max-age"] == "0" for morsel in jar.values())


def test_from_settings_requires_hash_key() -> None:
    with pytest.raises(EncodingError):
        CookieManager.from_settings(CookieSettings())
