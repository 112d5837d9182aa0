"""Environment-driven configuration.

Values come from the process environment, with a ``.env`` file loaded first
through python-dotenv. Only the project id is mandatory; the API key is
needed only for the REST passthrough operations.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .errors import ConfigurationError
from .key_providers import DEFAULT_TTL_SECONDS, GOOGLE_JWK_URL


def get_env_var(name: str) -> str:
    """Return a required environment variable.

    Raises:
        ConfigurationError: If the variable is unset or empty.
    """
    value = os.environ.get(name)
    if not value:
        raise ConfigurationError(f"Missing environment variable: {name}")
    return value


@dataclass(frozen=True, slots=True)
class FirebaseSettings:
    """Settings for the Firebase auth integration.

    Attributes:
        project_id: ``FIREBASE_PROJECT_ID``; expected audience and issuer suffix.
        api_key: ``FIREBASE_API_KEY``; Web API key for the REST calls.
        path_prefix: ``FIREBASE_AUTH_PATH_PREFIX``; prefix of the HTTP routes.
        jwks_url: ``FIREBASE_JWKS_URL``; public key endpoint.
        jwks_default_ttl: ``FIREBASE_JWKS_DEFAULT_TTL``; TTL in seconds when
            the key response has no max-age.
        log_level: ``LOG_LEVEL``.
        log_format: ``LOG_FORMAT``, "json" or "console".
    """

    project_id: str
    api_key: str | None = None
    path_prefix: str = "/auth"
    jwks_url: str = GOOGLE_JWK_URL
    jwks_default_ttl: int = DEFAULT_TTL_SECONDS
    log_level: str = "INFO"
    log_format: str = "console"

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> FirebaseSettings:
        if dotenv:
            load_dotenv()

        ttl_raw = os.environ.get("FIREBASE_JWKS_DEFAULT_TTL")
        try:
            ttl = int(ttl_raw) if ttl_raw else DEFAULT_TTL_SECONDS
        except ValueError as e:
            raise ConfigurationError(
                f"FIREBASE_JWKS_DEFAULT_TTL must be an integer, got {ttl_raw!r}"
            ) from e

        log_format = os.environ.get("LOG_FORMAT", "console").lower()
        if log_format not in ("json", "console"):
            raise ConfigurationError(f"LOG_FORMAT must be 'json' or 'console', got {log_format!r}")

        return cls(
            project_id=get_env_var("FIREBASE_PROJECT_ID"),
            api_key=os.environ.get("FIREBASE_API_KEY") or None,
            path_prefix=os.environ.get("FIREBASE_AUTH_PATH_PREFIX", "/auth"),
            jwks_url=os.environ.get("FIREBASE_JWKS_URL", GOOGLE_JWK_URL),
            jwks_default_ttl=ttl,
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            log_format=log_format,
        )
