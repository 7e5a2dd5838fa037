"""Request-level CSRF checks for the login callback."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from flyteauth.cookies.csrf import CSRF_FORM_KEY, verify_csrf_cookie

LOGGER = logging.getLogger(__name__)

AUTH_FAILED_DETAIL = "Authentication failed"
_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def collect_form_values(request: Request) -> dict[str, str]:
    """Merge query parameters and the form body; body values win."""

    values: dict[str, str] = dict(request.query_params)
    content_type = request.headers.get("content-type", "")
    if request.method == "POST" and content_type.startswith(_FORM_CONTENT_TYPES):
        form = await request.form()
        for key, value in form.items():
            if isinstance(value, str):
                values[key] = value
    return values


async def verify_csrf_request(request: Request) -> bool:
    """Return whether the request's ``state`` matches its CSRF cookie."""

    try:
        values = await collect_form_values(request)
    except (MultiPartException, StarletteHTTPException):
        LOGGER.debug("CSRF verification failed: unreadable form body")
        return False
    return verify_csrf_cookie(request.cookies, values)


async def require_csrf(request: Request) -> None:
    """FastAPI dependency rejecting callbacks whose CSRF state does not verify."""

    if not await verify_csrf_request(request):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AUTH_FAILED_DETAIL,
        )


__all__ = [
    "AUTH_FAILED_DETAIL",
    "CSRF_FORM_KEY",
    "collect_form_values",
    "require_csrf",
    "verify_csrf_request",
]
