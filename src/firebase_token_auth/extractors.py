"""Where a request carries its Firebase ID token.

The browser SDK hands the client an ID token via ``getIdToken()``; the client
then sends it either as ``Authorization: Bearer <id token>`` or, for
server-rendered pages, in a cookie. Firebase Hosting strips every cookie
except ``__session`` before forwarding to a backend, so apps behind Hosting
should use ``CookieExtractor(HOSTING_SESSION_COOKIE)``.

ID tokens are never read from query parameters.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from flask import request

from .errors import MissingToken

if TYPE_CHECKING:
    from .protocols import Extractor

DEFAULT_COOKIE_NAME: Final[str] = "id_token"

HOSTING_SESSION_COOKIE: Final[str] = "__session"
"""The only cookie Firebase Hosting forwards to Cloud Functions / Cloud Run."""


def id_token_from_authorization(header: str | None) -> str:
    """Return the ID token from an ``Authorization`` header value.

    Raises:
        MissingToken: If the header is absent, not ``Bearer`` or has no token.
    """
    if not header or not header.strip():
        raise MissingToken("No ID token: Authorization header is absent")

    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != "bearer":
        raise MissingToken(f"No ID token: unsupported authorization scheme '{scheme}'")

    token = token.strip()
    if not token:
        raise MissingToken("No ID token: Bearer credentials are empty")
    return token


class BearerExtractor:
    """Reads the ID token from ``Authorization: Bearer <id token>``."""

    def extract(self) -> str:
        return id_token_from_authorization(request.headers.get("Authorization"))


class CookieExtractor:
    """Reads the ID token from a cookie.

    The cookie should be HttpOnly and Secure, and cookie-authenticated
    state-changing routes need CSRF protection.
    """

    def __init__(self, cookie_name: str = DEFAULT_COOKIE_NAME) -> None:
        if not cookie_name or not cookie_name.strip():
            raise ValueError("cookie_name cannot be empty")
        self.cookie_name = cookie_name

    def extract(self) -> str:
        token = request.cookies.get(self.cookie_name, "").strip()
        if not token:
            raise MissingToken(f"No ID token: cookie '{self.cookie_name}' is not set")
        return token


class FirstOfExtractor:
    """Tries several extractors in order and returns the first token found.

    Lets one route accept API clients (header) and browser sessions (cookie).
    If none yields a token, the first extractor's MissingToken is raised.
    """

    def __init__(self, *extractors: Extractor) -> None:
        if not extractors:
            raise ValueError("at least one extractor is required")
        self._extractors = extractors

    def extract(self) -> str:
        errors: list[MissingToken] = []
        for extractor in self._extractors:
            try:
                return extractor.extract()
            except MissingToken as e:
                errors.append(e)
        raise errors[0]
