"""Authenticated, optionally encrypted cookie values.

Wire format (URL-safe base64, no padding)::

    b64(timestamp | b64(payload) | hmac)

``hmac`` is HMAC-SHA256 over ``name|mode|timestamp|b64(payload)`` so a value
minted for one cookie cannot be replayed under another name, and an encrypted
value (mode ``e``) cannot be read as plaintext (mode ``p``) or vice versa.
When a block key is configured the payload is ``nonce + AES-GCM(value)`` with
the cookie name as associated data; otherwise it is the UTF-8 value itself.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
import secrets
import time
from collections.abc import Callable

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from flyteauth.core.models import Cookie

LOGGER = logging.getLogger(__name__)

MIN_HASH_KEY_LENGTH = 32
BLOCK_KEY_LENGTHS = (16, 24, 32)
NONCE_SIZE = 12
DEFAULT_MAX_AGE = 86400
DEFAULT_MAX_LENGTH = 4096
DEFAULT_CLOCK_SKEW = 60
MODE_ENCRYPTED = b"e"
MODE_PLAIN = b"p"


class SecureCookieError(RuntimeError):
    """Base class for secure cookie failures."""


class EncodingError(SecureCookieError):
    """Raised when keys are malformed or a value cannot be encoded."""


class VerificationError(SecureCookieError):
    """Raised when a cookie value fails authentication."""


class DecryptionError(SecureCookieError):
    """Raised when an authenticated value cannot be decrypted."""


class ExpiredError(SecureCookieError):
    """Raised when a cookie value is older than the configured max age."""


def generate_random_key(length: int) -> bytes:
    """Return ``length`` random bytes suitable for a hash or block key."""
    return secrets.token_bytes(length)


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64decode(text: str) -> bytes:
    try:
        raw = base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))
    except (binascii.Error, ValueError) as exc:
        raise VerificationError("Cookie value is not valid base64") from exc
    # The decoder skips foreign characters and ignores trailing bits, so
    # only the canonical spelling of a value is accepted.
    if _b64encode(raw) != text:
        raise VerificationError("Cookie value is not canonically encoded")
    return raw


class SecureCookieCodec:
    """Encode and decode cookie values with HMAC-SHA256 and optional AES-GCM."""

    def __init__(
        self,
        hash_key: bytes,
        block_key: bytes | None = None,
        *,
        max_age: int = DEFAULT_MAX_AGE,
        max_length: int = DEFAULT_MAX_LENGTH,
        clock_skew: int = DEFAULT_CLOCK_SKEW,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Validate keys and prepare the cipher.

        Args:
            hash_key: HMAC key, at least 32 bytes.
            block_key: AES key of 16, 24 or 32 bytes; ``None`` disables encryption.
            max_age: Maximum accepted age in seconds; ``0`` disables the check.
            max_length: Maximum encoded length; ``0`` disables the check.
            clock_skew: Seconds a timestamp may lie in the future.
            clock: UNIX-time provider, overridable for deterministic tests.

        Raises:
            EncodingError: When either key has an unsupported length.
        """
        if not hash_key or len(hash_key) < MIN_HASH_KEY_LENGTH:
            msg = f"Hash key must be at least {MIN_HASH_KEY_LENGTH} bytes"
            raise EncodingError(msg)
        if block_key is not None and len(block_key) not in BLOCK_KEY_LENGTHS:
            msg = f"Block key must be one of {BLOCK_KEY_LENGTHS} bytes, got {len(block_key)}"
            raise EncodingError(msg)
        self._hash_key = bytes(hash_key)
        self._cipher = AESGCM(bytes(block_key)) if block_key is not None else None
        self._max_age = max_age
        self._max_length = max_length
        self._clock_skew = clock_skew
        self._clock = clock

    @property
    def encrypts(self) -> bool:
        """Whether values are encrypted in addition to being authenticated."""
        return self._cipher is not None

    def encode(self, name: str, value: str) -> str:
        """Return the wire form of ``value`` for the cookie ``name``."""
        if not isinstance(value, str):
            msg = f"Cookie values must be str, got {type(value).__name__}"
            raise EncodingError(msg)
        try:
            payload = value.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise EncodingError("Cookie value is not encodable as UTF-8") from exc

        if self._cipher is not None:
            nonce = secrets.token_bytes(NONCE_SIZE)
            payload = nonce + self._cipher.encrypt(nonce, payload, name.encode("utf-8"))

        body = _b64encode(payload).encode("ascii")
        timestamp = str(int(self._clock())).encode("ascii")
        mac = self._mac(name, timestamp, body)
        wire = _b64encode(b"|".join((timestamp, body, mac)))

        if self._max_length and len(wire) > self._max_length:
            msg = f"Encoded cookie {name!r} exceeds {self._max_length} characters"
            raise EncodingError(msg)
        return wire

    def decode(self, name: str, wire: str) -> str:
        """Verify and return the original value stored under ``name``."""
        if self._max_length and len(wire) > self._max_length:
            raise VerificationError("Cookie value is too long")

        parts = _b64decode(wire).split(b"|", 2)
        if len(parts) != 3:
            raise VerificationError("Cookie value is malformed")
        timestamp, body, mac = parts

        if not hmac.compare_digest(mac, self._mac(name, timestamp, body)):
            raise VerificationError("Cookie signature mismatch")

        try:
            issued_at = int(timestamp.decode("ascii"))
        except ValueError as exc:
            raise VerificationError("Cookie timestamp is invalid") from exc
        now = self._clock()
        if issued_at > now + self._clock_skew:
            raise VerificationError(f"Cookie {name!r} timestamp is in the future")
        if self._max_age > 0 and issued_at < now - self._max_age:
            raise ExpiredError(f"Cookie {name!r} has expired")

        payload = _b64decode(body.decode("ascii"))
        if self._cipher is not None:
            if len(payload) <= NONCE_SIZE:
                raise DecryptionError("Encrypted payload is truncated")
            nonce, ciphertext = payload[:NONCE_SIZE], payload[NONCE_SIZE:]
            try:
                payload = self._cipher.decrypt(nonce, ciphertext, name.encode("utf-8"))
            except InvalidTag as exc:
                raise DecryptionError("Cookie payload failed to decrypt") from exc

        try:
            return payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecryptionError("Cookie payload is not valid UTF-8") from exc

    def _mac(self, name: str, timestamp: bytes, body: bytes) -> bytes:
        mode = MODE_ENCRYPTED if self._cipher is not None else MODE_PLAIN
        message = b"|".join((name.encode("utf-8"), mode, timestamp, body))
        return hmac.new(self._hash_key, message, hashlib.sha256).digest()


def encode_secure_value(
    name: str, value: str, hash_key: bytes, block_key: bytes | None = None
) -> str:
    """Encode ``value`` for the cookie ``name`` with the given keys."""
    return SecureCookieCodec(hash_key, block_key).encode(name, value)


def decode_secure_value(
    name: str,
    wire: str,
    hash_key: bytes,
    block_key: bytes | None = None,
    *,
    max_age: int = DEFAULT_MAX_AGE,
) -> str:
    """Decode a wire value produced by :func:`encode_secure_value`."""
    return SecureCookieCodec(hash_key, block_key, max_age=max_age).decode(name, wire)


def new_secure_cookie(
    name: str, value: str, hash_key: bytes, block_key: bytes | None = None
) -> Cookie:
    """Build an HTTP-only cookie carrying an authenticated ``value``."""
    return Cookie(name=name, value=encode_secure_value(name, value, hash_key, block_key))


def read_secure_cookie(
    cookie: Cookie, hash_key: bytes, block_key: bytes | None = None
) -> str:
    """Return the verified value of a cookie built by :func:`new_secure_cookie`."""
    try:
        return decode_secure_value(cookie.name, cookie.value, hash_key, block_key)
    except SecureCookieError:
        LOGGER.debug("Rejected secure cookie %s", cookie.name)
        raise


__all__ = [
    "DecryptionError",
    "EncodingError",
    "ExpiredError",
    "SecureCookieCodec",
    "SecureCookieError",
    "VerificationError",
    "decode_secure_value",
    "encode_secure_value",
    "generate_random_key",
    "new_secure_cookie",
    "read_secure_cookie",
]
