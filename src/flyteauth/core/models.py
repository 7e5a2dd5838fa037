"""Core domain models used across the application."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from starlette.responses import Response

SameSite = Literal["lax", "strict", "none"]


@dataclass(slots=True)
class Cookie:
    """An HTTP cookie ready to be written to a response."""

    name: str
    value: str = ""
    path: str = "/"
    max_age: int | None = None
    http_only: bool = True
    secure: bool = False
    same_site: SameSite = "lax"

    def apply(self, response: Response) -> None:
        """Attach the cookie to a response via ``Set-Cookie``."""

        response.set_cookie(
            key=self.name,
            value=self.value,
            max_age=self.max_age,
            path=self.path,
            httponly=self.http_only,
            secure=self.secure,
            samesite=self.same_site,
        )

    def expire(self, response: Response) -> None:
        """Instruct the client to drop the cookie."""

        response.delete_cookie(
            key=self.name,
            path=self.path,
            httponly=self.http_only,
            secure=self.secure,
            samesite=self.same_site,
        )


@dataclass(slots=True, frozen=True)
class CsrfState:
    """Secret CSRF token paired with the hash sent to the provider as ``state``."""

    seed: int
    token: str
    expected_hash: str


@dataclass(slots=True, frozen=True)
class TokenSet:
    """Tokens returned by the provider after a successful code exchange."""

    access_token: str
    refresh_token: str | None = None
    id_token: str | None = None


__all__ = ["Cookie", "CsrfState", "SameSite", "TokenSet"]
