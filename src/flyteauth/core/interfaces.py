"""Protocol interfaces for the collaborators the auth flow depends on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .config import OAuthOptions
from .models import TokenSet


class TokenExchangeError(RuntimeError):
    """Raised when the provider rejects an authorization code."""


class AuthenticationContext(Protocol):
    """Capability provider exposing the host's OAuth options."""

    def options(self) -> OAuthOptions:
        """Return the configured OAuth options."""
        raise NotImplementedError


class TokenExchanger(Protocol):
    """Abstraction over the provider's authorization-code exchange."""

    def exchange(self, code: str) -> TokenSet:
        """Trade an authorization code for tokens."""
        raise NotImplementedError


@dataclass(slots=True, frozen=True)
class StaticAuthContext:
    """Authentication context backed by fixed options."""

    oauth: OAuthOptions

    def options(self) -> OAuthOptions:
        return self.oauth


__all__ = [
    "AuthenticationContext",
    "StaticAuthContext",
    "TokenExchangeError",
    "TokenExchanger",
]
