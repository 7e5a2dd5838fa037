"""CSRF state tokens bound to the ``flyte_csrf_state`` cookie.

The secret token lives in an HTTP-only cookie; its SHA-256 hash travels to the
identity provider as the OAuth ``state`` parameter and must come back
unchanged on the callback.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from collections.abc import Mapping
from typing import Any

from flyteauth.core.models import Cookie, CsrfState

LOGGER = logging.getLogger(__name__)

CSRF_COOKIE_NAME = "flyte_csrf_state"
CSRF_FORM_KEY = "state"
CSRF_TOKEN_LENGTH = 10
CSRF_MAX_AGE = 60 * 60  # 1 hour
ALLOWED_CHARS = "abcdefghijklmnopqrstuvwxyz1234567890"


def new_csrf_token(seed: int) -> str:
    """Return the token derived from ``seed``.

    The first character is the last decimal digit of the seed so a token can
    be traced back to the seed that produced it; the remaining characters come
    from the SHA-256 digest of the seed. The mapping is deterministic and is
    only as unpredictable as ``seed`` itself.
    """

    digits = str(abs(seed))
    digest = hashlib.sha256(digits.encode("ascii")).digest()
    tail = "".join(
        ALLOWED_CHARS[byte % len(ALLOWED_CHARS)]
        for byte in digest[: CSRF_TOKEN_LENGTH - 1]
    )
    return digits[-1] + tail


def hash_csrf_state(token: str) -> str:
    """Return the lowercase hex SHA-256 digest sent to the provider as ``state``."""

    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_csrf_state(seed: int | None = None) -> CsrfState:
    """Create a fresh token and its expected state hash."""

    if seed is None:
        seed = secrets.randbits(63)
    token = new_csrf_token(seed)
    return CsrfState(seed=seed, token=token, expected_hash=hash_csrf_state(token))


def new_csrf_cookie(
    value: str = "", *, max_age: int = CSRF_MAX_AGE, secure: bool = False
) -> Cookie:
    """Return the CSRF cookie; callers set ``value`` to the secret token."""

    return Cookie(
        name=CSRF_COOKIE_NAME,
        value=value,
        path="/",
        max_age=max_age,
        http_only=True,
        secure=secure,
    )


def _first_value(raw: Any) -> str | None:
    if isinstance(raw, (list, tuple)):
        raw = raw[0] if raw else None
    return raw if isinstance(raw, str) else None


def verify_csrf_cookie(cookies: Mapping[str, str], form: Mapping[str, Any]) -> bool:
    """Check the submitted ``state`` against the hash of the cookie secret.

    Every failure yields ``False``; the reason is only logged at debug level.
    """

    state = _first_value(form.get(CSRF_FORM_KEY))
    if not state:
        LOGGER.debug("CSRF verification failed: no state submitted")
        return False

    secret = cookies.get(CSRF_COOKIE_NAME)
    if not secret:
        LOGGER.debug("CSRF verification failed: cookie %s missing", CSRF_COOKIE_NAME)
        return False

    expected = hash_csrf_state(secret).encode("utf-8")
    if not hmac.compare_digest(expected, state.encode("utf-8")):
        LOGGER.debug("CSRF verification failed: state mismatch")
        return False
    return True


__all__ = [
    "ALLOWED_CHARS",
    "CSRF_COOKIE_NAME",
    "CSRF_FORM_KEY",
    "CSRF_MAX_AGE",
    "hash_csrf_state",
    "issue_csrf_state",
    "new_csrf_cookie",
    "new_csrf_token",
    "verify_csrf_cookie",
]
