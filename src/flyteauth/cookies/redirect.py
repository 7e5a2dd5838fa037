"""Post-login redirect target carried across the auth handshake."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from urllib.parse import quote, urlsplit

from flyteauth.core.interfaces import AuthenticationContext
from flyteauth.core.models import Cookie

LOGGER = logging.getLogger(__name__)

REDIRECT_COOKIE_NAME = "flyte_redirect_location"
REDIRECT_MAX_AGE = 60 * 60  # 1 hour

_PATH_SAFE_CHARS = "/%:@!$&'()*+,;=-._~"
_LEADING_SLASHES = re.compile(r"^/+")


def redirect_path(redirect_url: str | None) -> str | None:
    """Reduce ``redirect_url`` to an escaped, host-relative path.

    Scheme, host, query and fragment are dropped so the cookie can only ever
    send the user back into this application.
    """
    cleaned = (redirect_url or "").replace("\r", "").replace("\n", "").strip()
    if not cleaned:
        return None
    try:
        path = urlsplit(cleaned).path
    except ValueError:
        LOGGER.debug("Ignoring unparseable redirect target")
        return None
    if not path:
        return None
    # `//host` would be read by browsers as a scheme-relative URL.
    path = _LEADING_SLASHES.sub("/", path)
    if not path.startswith("/"):
        path = "/" + path
    return quote(path, safe=_PATH_SAFE_CHARS)


def new_redirect_cookie(
    redirect_url: str | None,
    *,
    max_age: int = REDIRECT_MAX_AGE,
    secure: bool = False,
) -> Cookie | None:
    """Return a cookie remembering where to land after login, or ``None``."""
    path = redirect_path(redirect_url)
    if path is None:
        LOGGER.debug("Ignoring redirect target without a path")
        return None
    return Cookie(
        name=REDIRECT_COOKIE_NAME,
        value=path,
        path="/",
        max_age=max_age,
        http_only=True,
        secure=secure,
    )


def get_auth_flow_end_redirect(
    auth_context: AuthenticationContext, cookies: Mapping[str, str]
) -> str:
    """Return the redirect cookie's path or the configured default.

    The cookie is client-held, so its value is reduced to a local path again
    before use.
    """
    target = redirect_path(cookies.get(REDIRECT_COOKIE_NAME))
    if target:
        return target
    return auth_context.options().redirect_url


__all__ = [
    "REDIRECT_COOKIE_NAME",
    "REDIRECT_MAX_AGE",
    "get_auth_flow_end_redirect",
    "new_redirect_cookie",
    "redirect_path",
]
