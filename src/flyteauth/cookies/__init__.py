"""Secure cookies, CSRF state and redirect handling for the login flow."""

from .csrf import (
    CSRF_COOKIE_NAME,
    CSRF_FORM_KEY,
    hash_csrf_state,
    issue_csrf_state,
    new_csrf_cookie,
    new_csrf_token,
    verify_csrf_cookie,
)
from .manager import CookieManager
from .redirect import (
    REDIRECT_COOKIE_NAME,
    get_auth_flow_end_redirect,
    new_redirect_cookie,
)
from .secure import (
    DecryptionError,
    EncodingError,
    ExpiredError,
    SecureCookieCodec,
    SecureCookieError,
    VerificationError,
    decode_secure_value,
    encode_secure_value,
    generate_random_key,
    new_secure_cookie,
    read_secure_cookie,
)

__all__ = [
    "CSRF_COOKIE_NAME",
    "CSRF_FORM_KEY",
    "CookieManager",
    "DecryptionError",
    "EncodingError",
    "ExpiredError",
    "REDIRECT_COOKIE_NAME",
    "SecureCookieCodec",
    "SecureCookieError",
    "VerificationError",
    "decode_secure_value",
    "encode_secure_value",
    "generate_random_key",
    "get_auth_flow_end_redirect",
    "hash_csrf_state",
    "issue_csrf_state",
    "new_csrf_cookie",
    "new_csrf_token",
    "new_redirect_cookie",
    "new_secure_cookie",
    "read_secure_cookie",
    "verify_csrf_cookie",
]
