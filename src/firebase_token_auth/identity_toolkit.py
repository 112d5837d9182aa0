"""Passthrough client for the Firebase Auth REST APIs.

Each call builds a POST request, forwards the body and hands back the raw
response text. Any non-2xx answer raises IdentityToolkitError carrying
Firebase's response body, which holds the machine-readable error
(``EMAIL_NOT_FOUND``, ``INVALID_ID_TOKEN``, ...).
"""

from __future__ import annotations

from typing import Any, Final

import requests
import structlog

from .errors import ConfigurationError, IdentityToolkitError

logger = structlog.get_logger(__name__)

IDENTITY_TOOLKIT_BASE: Final[str] = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_URL: Final[str] = "https://securetoken.googleapis.com/v1/token"


class IdentityToolkitClient:
    """Thin wrapper over the Identity Toolkit and Secure Token endpoints.

    Args:
        api_key: Firebase Web API key, sent as the ``key`` query parameter.
        session: HTTP session to use. A new one is created when omitted.
        timeout: Optional per-request timeout in seconds.
    """

    def __init__(
        self,
        api_key: str,
        session: requests.Session | None = None,
        timeout: float | None = None,
        base_url: str = IDENTITY_TOOLKIT_BASE,
        token_url: str = SECURE_TOKEN_URL,
    ) -> None:
        if not api_key:
            raise ConfigurationError("A Firebase API key is required for REST operations")
        self._api_key = api_key
        self._session = session or requests.Session()
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")
        self._token_url = token_url

    def _post(self, operation: str, url: str, **kwargs: Any) -> str:
        response = self._session.post(
            url,
            params={"key": self._api_key},
            timeout=self._timeout,
            **kwargs,
        )
        if not response.ok:
            logger.warning(
                "firebase_rest_call_failed",
                operation=operation,
                status=response.status_code,
            )
            raise IdentityToolkitError(operation, response.status_code, response.text)
        return response.text

    def get_user_data(self, id_token: str) -> str:
        """Look up the account behind an ID token. Returns the raw JSON text."""
        return self._post(
            "getUserData",
            f"{self._base_url}/accounts:lookup",
            json={"idToken": id_token},
        )

    def send_password_reset_email(self, email: str) -> None:
        self._post(
            "sendPasswordResetEmail",
            f"{self._base_url}/accounts:sendOobCode",
            json={"requestType": "PASSWORD_RESET", "email": email},
        )

    def send_email_verification(self, id_token: str) -> None:
        self._post(
            "sendEmailVerification",
            f"{self._base_url}/accounts:sendOobCode",
            json={"requestType": "VERIFY_EMAIL", "idToken": id_token},
        )

    def delete_account(self, id_token: str) -> None:
        self._post(
            "deleteAccount",
            f"{self._base_url}/accounts:delete",
            json={"idToken": id_token},
        )

    def refresh_token(self, refresh_token: str) -> str:
        """Exchange a refresh token for a new ID token. Returns the raw JSON text."""
        return self._post(
            "refreshToken",
            self._token_url,
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
        )
