"""FastAPI application wiring the cookie-backed login flow."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any
from urllib.parse import urlencode

from fastapi import Depends, FastAPI, HTTPException, Request, status as http_status
from fastapi.responses import RedirectResponse
from starlette.concurrency import run_in_threadpool

from flyteauth.core import AppSettings, load_app_settings
from flyteauth.core.interfaces import (
    AuthenticationContext,
    StaticAuthContext,
    TokenExchangeError,
    TokenExchanger,
)
from flyteauth.cookies import (
    CookieManager,
    SecureCookieError,
    get_auth_flow_end_redirect,
    issue_csrf_state,
    new_csrf_cookie,
    new_redirect_cookie,
)
from flyteauth.cookies.csrf import CSRF_FORM_KEY

from .security import AUTH_FAILED_DETAIL, collect_form_values, require_csrf

LOGGER = logging.getLogger(__name__)

ENV_FILE_OVERRIDE_VAR = "FLYTEAUTH_WEB_ENV_FILE"
DEFAULT_ENV_FILE = Path(".env")


def _resolve_env_file() -> Path | None:
    override = os.environ.get(ENV_FILE_OVERRIDE_VAR)
    if override:
        return Path(override)
    return DEFAULT_ENV_FILE if DEFAULT_ENV_FILE.is_file() else None


def _authorize_redirect(authorize_url: str, state: str) -> str:
    separator = "&" if "?" in authorize_url else "?"
    return f"{authorize_url}{separator}{urlencode({CSRF_FORM_KEY: state})}"


def _auth_failed() -> HTTPException:
    return HTTPException(
        status_code=http_status.HTTP_401_UNAUTHORIZED, detail=AUTH_FAILED_DETAIL
    )


def create_app(
    settings: AppSettings | None = None,
    auth_context: AuthenticationContext | None = None,
    exchanger: TokenExchanger | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings; loaded from the environment when omitted.
        auth_context: Source of OAuth options; defaults to the configured ones.
        exchanger: Host-supplied authorization-code exchanger. Without it the
            callback answers 503.
    """
    app_settings = settings or load_app_settings(env_file=_resolve_env_file())
    context = auth_context or StaticAuthContext(app_settings.oauth)
    cookie_settings = app_settings.cookies
    app = FastAPI(title="Flyte Auth")

    manager: CookieManager | None = None
    if cookie_settings.hash_key:
        manager = CookieManager.from_settings(cookie_settings)
    else:
        LOGGER.warning("No cookie hash key configured; sessions are disabled")

    def get_manager() -> CookieManager:
        if manager is None:
            raise HTTPException(
                status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Session cookies are not configured",
            )
        return manager

    @app.get("/login")
    async def login(redirect_url: str | None = None) -> RedirectResponse:
        """Start the flow: remember the target, issue CSRF state, go to the provider."""
        authorize_url = context.options().authorize_url
        if not authorize_url:
            raise HTTPException(
                status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Authorization endpoint is not configured",
            )

        csrf_state = issue_csrf_state()
        response = RedirectResponse(
            _authorize_redirect(authorize_url, csrf_state.expected_hash),
            status_code=http_status.HTTP_307_TEMPORARY_REDIRECT,
        )
        new_csrf_cookie(
            csrf_state.token,
            max_age=cookie_settings.csrf_max_age,
            secure=cookie_settings.secure,
        ).apply(response)

        redirect_cookie = new_redirect_cookie(
            redirect_url,
            max_age=cookie_settings.redirect_max_age,
            secure=cookie_settings.secure,
        )
        if redirect_cookie is not None:
            redirect_cookie.apply(response)
        return response

    @app.api_route("/callback", methods=["GET", "POST"], dependencies=[Depends(require_csrf)])
    async def callback(
        request: Request,
        cookie_manager: CookieManager = Depends(get_manager),  # noqa: B008
    ) -> RedirectResponse:
        """Finish the flow after the provider echoes ``state`` back."""
        if exchanger is None:
            raise HTTPException(
                status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Token exchange is not configured",
            )
        values = await collect_form_values(request)
        code = values.get("code")
        if not code:
            LOGGER.info("Callback rejected: authorization code missing")
            raise _auth_failed()

        try:
            tokens = await run_in_threadpool(exchanger.exchange, code)
        except TokenExchangeError as exc:
            LOGGER.warning("Token exchange failed: %s", exc)
            raise _auth_failed() from exc

        target = get_auth_flow_end_redirect(context, request.cookies)
        response = RedirectResponse(target, status_code=http_status.HTTP_303_SEE_OTHER)
        cookie_manager.clear_flow_cookies(response)
        cookie_manager.set_token_cookies(response, tokens)
        LOGGER.info("Login completed; redirecting to %s", target)
        return response

    @app.get("/api/session")
    async def session(
        request: Request,
        cookie_manager: CookieManager = Depends(get_manager),  # noqa: B008
    ) -> dict[str, Any]:
        """Report whether the request carries a verified session."""
        try:
            tokens = cookie_manager.retrieve_token_values(request.cookies)
        except SecureCookieError as exc:
            LOGGER.info("Rejected session cookie: %s", type(exc).__name__)
            raise _auth_failed() from exc
        if tokens is None:
            raise _auth_failed()
        return {
            "authenticated": True,
            "hasRefreshToken": tokens.refresh_token is not None,
            "hasIdToken": tokens.id_token is not None,
        }

    @app.post("/logout")
    async def logout(
        cookie_manager: CookieManager = Depends(get_manager),  # noqa: B008
    ) -> RedirectResponse:
        """Drop every auth cookie and return to the default landing page."""
        response = RedirectResponse(
            context.options().redirect_url, status_code=http_status.HTTP_303_SEE_OTHER
        )
        cookie_manager.delete_cookies(response)
        return response

    return app


__all__ = ["ENV_FILE_OVERRIDE_VAR", "create_app"]
