"""Records kept by the auth store.

Timestamps on stored records are Unix epoch milliseconds. ``to_dict()``
renders the camelCase JSON shape served by the HTTP routes.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class CachedKeySet:
    """Snapshot of the provider JWK set.

    Attributes:
        keys: Raw JSON body returned by the JWK endpoint.
        fetched_at: When the body was fetched (ms).
        expires_at: When the snapshot goes stale (ms).
    """

    keys: str
    fetched_at: int
    expires_at: int

    def is_stale(self, now_ms: int) -> bool:
        return self.expires_at < now_ms


@dataclass(frozen=True, slots=True)
class UserProfile:
    """Profile fields derived from verified claims.

    ``None`` means "not provided" and leaves the stored value untouched on
    upsert.
    """

    firebase_uid: str
    email: str | None = None
    email_verified: bool | None = None
    display_name: str | None = None
    photo_url: str | None = None
    phone_number: str | None = None
    provider_id: str | None = None
    is_anonymous: bool | None = None
    last_sign_in_time: int | None = None

    def provided_fields(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "firebase_uid" and getattr(self, f.name) is not None
        }


@dataclass(frozen=True, slots=True)
class User:
    id: str
    creation_time: int
    firebase_uid: str
    email: str | None = None
    email_verified: bool | None = None
    display_name: str | None = None
    photo_url: str | None = None
    phone_number: str | None = None
    provider_id: str | None = None
    is_anonymous: bool | None = None
    disabled: bool | None = None
    last_sign_in_time: int | None = None
    custom_claims: str | None = None

    def with_updates(self, **changes: Any) -> User:
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "creationTime": self.creation_time,
            "firebaseUid": self.firebase_uid,
        }
        optional = {
            "email": self.email,
            "emailVerified": self.email_verified,
            "displayName": self.display_name,
            "photoURL": self.photo_url,
            "phoneNumber": self.phone_number,
            "providerId": self.provider_id,
            "isAnonymous": self.is_anonymous,
            "disabled": self.disabled,
            "lastSignInTime": self.last_sign_in_time,
            "customClaims": self.custom_claims,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data


@dataclass(frozen=True, slots=True)
class Session:
    id: str
    creation_time: int
    user_id: str
    firebase_uid: str
    expires_at: int
    created_at: int
    last_active_at: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "creationTime": self.creation_time,
            "userId": self.user_id,
            "firebaseUid": self.firebase_uid,
            "expiresAt": self.expires_at,
            "createdAt": self.created_at,
            "lastActiveAt": self.last_active_at,
        }
