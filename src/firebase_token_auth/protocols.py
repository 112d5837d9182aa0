"""Protocol definitions for Firebase token verification.

This module defines structural interfaces using Protocol (PEP 544) for:
- Token verification
- Key resolution
- Key-set caching
- User and session storage
- Token extraction

Any class that implements the required methods satisfies the protocol, so
tests and alternative backends need no inheritance.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias

if TYPE_CHECKING:
    from .jwt_parser import TokenPayload
    from .models import CachedKeySet, Session, User, UserProfile

# ============================================================================
# Type Aliases
# ============================================================================

JWK: TypeAlias = Mapping[str, Any]
"""A single JSON Web Key as published by Google (must carry a ``kid``)."""

ViewFunc: TypeAlias = Callable[..., Any]
"""Type alias for Flask view functions."""


# ============================================================================
# Verification Protocols
# ============================================================================


class TokenVerifier(Protocol):
    """Protocol for Firebase ID token verification.

    Implementers validate structure, signature and claims, and return the
    decoded payload. They never write to a store.
    """

    def verify(self, token: str, *, project_id: str | None = None) -> TokenPayload:
        """Verify an ID token and return its payload.

        Args:
            token: The raw compact JWT.
            project_id: Overrides the configured Firebase project id.

        Raises:
            InvalidToken: Any verification failure (see errors module).
        """
        ...


class KeyProvider(Protocol):
    """Protocol for resolving Firebase signing keys by kid."""

    def get_key_for_token(self, kid: str) -> JWK:
        """Return the JWK whose ``kid`` matches.

        Raises:
            KeyFetchError: The key set could not be fetched.
            KeyNotFound: No key matches ``kid``.
        """
        ...


class Extractor(Protocol):
    """Protocol for pulling the raw token out of the current Flask request."""

    def extract(self) -> str:
        """Return the raw token.

        Raises:
            MissingToken: Token not found or improperly formatted.
        """
        ...


# ============================================================================
# Storage Protocols
# ============================================================================


class KeyCacheStore(Protocol):
    """Protocol for the single-entry JWK set cache.

    There is at most one live entry. ``set_cached_keys`` replaces it
    entirely; readers must never observe more than one snapshot.
    """

    def get_cached_keys(self) -> CachedKeySet | None: ...

    def set_cached_keys(self, entry: CachedKeySet) -> None: ...


class AuthStore(KeyCacheStore, Protocol):
    """Protocol for the transactional user/session store.

    Timestamps are epoch milliseconds.
    """

    def upsert_user(self, profile: UserProfile) -> str:
        """Create or update the user keyed by ``profile.firebase_uid``.

        Only fields provided on the profile are written. Returns the user id,
        which is stable across upserts of the same uid.
        """
        ...

    def get_user_by_id(self, user_id: str) -> User | None: ...

    def get_user_by_firebase_uid(self, firebase_uid: str) -> User | None: ...

    def get_users_by_email(self, email: str) -> list[User]: ...

    def update_user_profile(
        self,
        firebase_uid: str,
        *,
        display_name: str | None = None,
        photo_url: str | None = None,
    ) -> None:
        """Raises UserNotFound if the uid is unknown."""
        ...

    def delete_user(self, firebase_uid: str) -> None:
        """Delete the user and every session that belongs to it."""
        ...

    def create_session(
        self,
        *,
        user_id: str,
        firebase_uid: str,
        expires_at: int,
        created_at: int,
        last_active_at: int,
    ) -> str:
        """Insert a session, pruning expired sessions of the same uid first."""
        ...

    def get_session(self, firebase_uid: str) -> Session | None:
        """Return the newest session of the uid, or None if it has expired."""
        ...

    def invalidate_session(self, session_id: str) -> None: ...

    def invalidate_all_sessions(self, firebase_uid: str) -> None: ...

    def cleanup_expired_sessions(self) -> int:
        """Delete every session whose ``expires_at`` has passed. Returns the count."""
        ...
