"""Tests for the request-level CSRF adapter."""

from __future__ import annotations

import asyncio
from typing import Any

from starlette.requests import Request

from flyteauth.cookies.csrf import hash_csrf_state
from flyteauth.web.security import verify_csrf_request


def _request(
    body: bytes, content_type: str, *, cookie: str = "flyte_csrf_state=x", query: bytes = b""
) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/callback",
        "query_string": query,
        "headers": [
            (b"content-type", content_type.encode("latin-1")),
            (b"cookie", cookie.encode("latin-1")),
        ],
    }

    async def receive() -> dict[str, Any]:
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


def test_verify_csrf_request_accepts_matching_form_state() -> None:
    body = f"state={hash_csrf_state('x')}".encode("ascii")
    request = _request(body, "application/x-www-form-urlencoded")

    assert asyncio.run(verify_csrf_request(request)) is True


def test_verify_csrf_request_reads_query_state() -> None:
    query = f"state={hash_csrf_state('x')}".encode("ascii")
    request = _request(b"", "text/plain", query=query)

    assert asyncio.run(verify_csrf_request(request)) is True


def test_verify_csrf_request_rejects_malformed_multipart_body() -> None:
    request = _request(b"garbage", "multipart/form-data")

    assert asyncio.run(verify_csrf_request(request)) is False
