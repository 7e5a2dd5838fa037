"""Command-line entry point for Flyte Auth."""

from __future__ import annotations

import argparse
import base64
from pathlib import Path

from flyteauth.core import AppSettings, configure_logging, load_app_settings
from flyteauth.core.config import ENV_PREFIX
from flyteauth.cookies import SecureCookieCodec, SecureCookieError, generate_random_key

HASH_KEY_LENGTH = 64
BLOCK_KEY_LENGTH = 32


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(description="Flyte Auth cookie tooling")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file containing configuration overrides.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="info",
        choices=["info", "generate-keys", "decode-cookie"],
        help="Operation to execute.",
    )
    parser.add_argument(
        "--name",
        default=None,
        help="Cookie name for decode-cookie.",
    )
    parser.add_argument(
        "--value",
        default=None,
        help="Encoded cookie value for decode-cookie.",
    )
    return parser


def execute(args: argparse.Namespace, settings: AppSettings) -> int:
    """Execute the requested CLI command and return the exit status."""
    command = args.command
    if command == "info":
        _print_info(settings)
    elif command == "generate-keys":
        _print_keys()
    elif command == "decode-cookie":
        return _decode_cookie(settings, name=args.name, value=args.value)
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_app_settings(env_file=args.env_file)
    configure_logging(settings.logging)
    return execute(args, settings)


def _print_info(settings: AppSettings) -> None:
    cookies = settings.cookies
    hash_key = cookies.hash_key_bytes()
    block_key = cookies.block_key_bytes()
    print(f"Hash key: {f'{len(hash_key)} bytes' if hash_key else 'not configured'}")
    print(f"Block key: {f'{len(block_key)} bytes' if block_key else 'not configured'}")
    print(f"Secure cookies: {cookies.secure}")
    print(f"Session max age: {cookies.session_max_age}s")
    print(f"Default redirect: {settings.oauth.redirect_url}")


def _print_keys() -> None:
    """Print freshly generated keys as environment assignments."""
    hash_key = generate_random_key(HASH_KEY_LENGTH)
    block_key = generate_random_key(BLOCK_KEY_LENGTH)
    print(f"{ENV_PREFIX}COOKIES__HASH_KEY={base64.b64encode(hash_key).decode('ascii')}")
    print(f"{ENV_PREFIX}COOKIES__BLOCK_KEY={base64.b64encode(block_key).decode('ascii')}")


def _decode_cookie(settings: AppSettings, *, name: str | None, value: str | None) -> int:
    """Verify a cookie value with the configured keys and print its contents."""
    if not name or not value:
        print("decode-cookie requires --name and --value.")
        return 2
    hash_key = settings.cookies.hash_key_bytes()
    if hash_key is None:
        print("No hash key configured.")
        return 2
    try:
        codec = SecureCookieCodec(
            hash_key,
            settings.cookies.block_key_bytes(),
            max_age=settings.cookies.session_max_age,
            max_length=settings.cookies.max_length,
        )
        decoded = codec.decode(name, value)
    except SecureCookieError as exc:
        print(f"Decode failed ({type(exc).__name__}): {exc}")
        return 1
    print(decoded)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
