"""Persist provider tokens in secure cookies."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from starlette.responses import Response

from flyteauth.core.config import CookieSettings
from flyteauth.core.models import Cookie, TokenSet

from .csrf import CSRF_COOKIE_NAME
from .redirect import REDIRECT_COOKIE_NAME
from .secure import EncodingError, SecureCookieCodec

LOGGER = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE_NAME = "flyte_jwt"
REFRESH_TOKEN_COOKIE_NAME = "flyte_refresh"
ID_TOKEN_COOKIE_NAME = "flyte_idt"

AUTH_COOKIE_NAMES: tuple[str, ...] = (
    ACCESS_TOKEN_COOKIE_NAME,
    REFRESH_TOKEN_COOKIE_NAME,
    ID_TOKEN_COOKIE_NAME,
    CSRF_COOKIE_NAME,
    REDIRECT_COOKIE_NAME,
)


class CookieManager:
    """Write, read and clear the token cookies of an authenticated session."""

    def __init__(self, codec: SecureCookieCodec, settings: CookieSettings) -> None:
        self._codec = codec
        self._settings = settings

    @classmethod
    def from_settings(cls, settings: CookieSettings) -> CookieManager:
        """Build a manager whose codec uses the configured keys."""
        hash_key = settings.hash_key_bytes()
        if hash_key is None:
            raise EncodingError("A cookie hash key must be configured")
        codec = SecureCookieCodec(
            hash_key,
            settings.block_key_bytes(),
            max_age=settings.session_max_age,
            max_length=settings.max_length,
        )
        return cls(codec, settings)

    def _cookie(self, name: str, value: str) -> Cookie:
        return Cookie(
            name=name,
            value=self._codec.encode(name, value),
            max_age=self._settings.session_max_age,
            http_only=True,
            secure=self._settings.secure,
        )

    def set_token_cookies(self, response: Response, tokens: TokenSet) -> None:
        """Encode every present token into its cookie on ``response``."""
        cookies = [self._cookie(ACCESS_TOKEN_COOKIE_NAME, tokens.access_token)]
        if tokens.refresh_token:
            cookies.append(self._cookie(REFRESH_TOKEN_COOKIE_NAME, tokens.refresh_token))
        if tokens.id_token:
            cookies.append(self._cookie(ID_TOKEN_COOKIE_NAME, tokens.id_token))
        for cookie in cookies:
            cookie.apply(response)
        LOGGER.debug("Issued %d token cookie(s)", len(cookies))

    def retrieve_token_values(self, cookies: Mapping[str, str]) -> TokenSet | None:
        """Return the verified tokens, or ``None`` when no session cookie is present.

        Raises:
            SecureCookieError: When a present cookie fails verification.
        """
        access_wire = cookies.get(ACCESS_TOKEN_COOKIE_NAME)
        if not access_wire:
            return None
        access_token = self._codec.decode(ACCESS_TOKEN_COOKIE_NAME, access_wire)
        return TokenSet(
            access_token=access_token,
            refresh_token=self._optional(cookies, REFRESH_TOKEN_COOKIE_NAME),
            id_token=self._optional(cookies, ID_TOKEN_COOKIE_NAME),
        )

    def _optional(self, cookies: Mapping[str, str], name: str) -> str | None:
        wire = cookies.get(name)
        return self._codec.decode(name, wire) if wire else None

    def clear_flow_cookies(self, response: Response) -> None:
        """Expire the single-use CSRF and redirect cookies once a login completes."""
        for name in (CSRF_COOKIE_NAME, REDIRECT_COOKIE_NAME):
            Cookie(name=name, secure=self._settings.secure).expire(response)

    def delete_cookies(self, response: Response) -> None:
        """Expire every cookie the auth flow may have issued."""
        for name in AUTH_COOKIE_NAMES:
            Cookie(name=name, secure=self._settings.secure).expire(response)


__all__ = [
    "ACCESS_TOKEN_COOKIE_NAME",
    "AUTH_COOKIE_NAMES",
    "CookieManager",
    "ID_TOKEN_COOKIE_NAME",
    "REFRESH_TOKEN_COOKIE_NAME",
]
