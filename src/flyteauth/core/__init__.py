"""Core utilities for configuration, logging, and collaborator interfaces."""

from .config import AppSettings, CookieSettings, OAuthOptions, load_app_settings
from .interfaces import AuthenticationContext, StaticAuthContext, TokenExchanger
from .logging import configure_logging
from .models import Cookie, CsrfState, TokenSet

__all__ = [
    "AppSettings",
    "AuthenticationContext",
    "Cookie",
    "CookieSettings",
    "CsrfState",
    "OAuthOptions",
    "StaticAuthContext",
    "TokenExchanger",
    "TokenSet",
    "configure_logging",
    "load_app_settings",
]
