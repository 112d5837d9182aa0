"""Verification plus persistence: the end-to-end sign-in flow.

FirebaseAuthService runs the verifier and, only once every check has passed,
upserts the local user and opens a session. It also fronts the user/session
management operations and the Firebase REST passthroughs so that a web layer
needs a single collaborator.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from .errors import ConfigurationError
from .models import UserProfile

if TYPE_CHECKING:
    from .identity_toolkit import IdentityToolkitClient
    from .jwt_parser import TokenPayload
    from .models import Session, User
    from .protocols import AuthStore, TokenVerifier

logger = structlog.get_logger(__name__)


def profile_from_payload(payload: TokenPayload) -> UserProfile:
    """Map verified claims onto the stored user profile."""
    provider = payload.sign_in_provider
    auth_time = payload.auth_time
    return UserProfile(
        firebase_uid=payload.sub,
        email=payload.email,
        email_verified=payload.email_verified,
        display_name=payload.name,
        photo_url=payload.picture,
        phone_number=payload.phone_number,
        provider_id=provider,
        is_anonymous=True if provider == "anonymous" else None,
        last_sign_in_time=int(auth_time * 1000) if auth_time else None,
    )


class FirebaseAuthService:
    """Facade over verification, the auth store and the REST client.

    Args:
        verifier: Token verifier (signature + claims).
        store: User/session store.
        toolkit: Optional REST client; required only by the passthrough methods.
    """

    def __init__(
        self,
        verifier: TokenVerifier,
        store: AuthStore,
        toolkit: IdentityToolkitClient | None = None,
    ) -> None:
        self._verifier = verifier
        self._store = store
        self._toolkit = toolkit

    @property
    def verifier(self) -> TokenVerifier:
        return self._verifier

    # ------------------------------------------------------------------
    # Sign-in
    # ------------------------------------------------------------------

    def verify_token(self, id_token: str, project_id: str | None = None) -> User | None:
        """Verify an ID token, then record the user and a new session.

        Every call that verifies creates a session, even for a token seen
        before. The user upsert is idempotent per uid.

        Returns:
            The stored user, or None if it disappeared between the upsert
            and the read.

        Raises:
            InvalidToken: Verification failed; nothing was written.
        """
        payload = self._verifier.verify(id_token, project_id=project_id)
        profile = profile_from_payload(payload)
        expires_at = int(payload.exp * 1000)

        user_id = self._store.upsert_user(profile)

        now = int(time.time() * 1000)
        self._store.create_session(
            user_id=user_id,
            firebase_uid=payload.sub,
            expires_at=expires_at,
            created_at=now,
            last_active_at=now,
        )
        logger.info("user_signed_in", user_id=user_id, provider=payload.sign_in_provider)

        return self._store.get_user_by_id(user_id)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_user(self, user_id: str) -> User | None:
        return self._store.get_user_by_id(user_id)

    def get_user_by_firebase_uid(self, firebase_uid: str) -> User | None:
        return self._store.get_user_by_firebase_uid(firebase_uid)

    def update_user_profile(
        self,
        firebase_uid: str,
        *,
        display_name: str | None = None,
        photo_url: str | None = None,
    ) -> None:
        self._store.update_user_profile(
            firebase_uid, display_name=display_name, photo_url=photo_url
        )

    def delete_user(self, firebase_uid: str) -> None:
        self._store.delete_user(firebase_uid)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def get_session(self, firebase_uid: str) -> Session | None:
        return self._store.get_session(firebase_uid)

    def sign_out(self, firebase_uid: str) -> None:
        self._store.invalidate_all_sessions(firebase_uid)

    def invalidate_session(self, session_id: str) -> None:
        self._store.invalidate_session(session_id)

    def cleanup_expired_sessions(self) -> int:
        return self._store.cleanup_expired_sessions()

    # ------------------------------------------------------------------
    # Firebase REST passthroughs
    # ------------------------------------------------------------------

    @property
    def toolkit(self) -> IdentityToolkitClient:
        if self._toolkit is None:
            raise ConfigurationError("FIREBASE_API_KEY is not configured")
        return self._toolkit

    def get_user_data(self, id_token: str) -> str:
        return self.toolkit.get_user_data(id_token)

    def send_password_reset_email(self, email: str) -> None:
        self.toolkit.send_password_reset_email(email)

    def send_email_verification(self, id_token: str) -> None:
        self.toolkit.send_email_verification(id_token)

    def delete_firebase_account(self, id_token: str) -> None:
        self.toolkit.delete_account(id_token)

    def refresh_token(self, refresh_token: str) -> str:
        return self.toolkit.refresh_token(refresh_token)
