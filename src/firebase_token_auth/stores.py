"""Store implementations for users, sessions and the JWK set cache.

Implementations:
- InMemoryStore: Full AuthStore kept in process memory (tests, dev,
  single-instance deployments)
- RedisKeyCache: KeyCacheStore backed by Redis, so every instance of a
  horizontally scaled service shares one JWK snapshot

The key cache is a keyed upsert on a fixed singleton key in both
implementations. Replacing the snapshot is a single write, so a concurrent
reader sees either the old or the new entry and never an empty cache.
"""

from __future__ import annotations

import json
import threading
import time
import uuid
from dataclasses import asdict
from typing import TYPE_CHECKING, Any, Final

import structlog

from .errors import UserNotFound
from .models import CachedKeySet, Session, User

if TYPE_CHECKING:
    from .models import UserProfile

logger = structlog.get_logger(__name__)

_KEY_CACHE_SLOT: Final[str] = "google-jwks"
"""Fixed key of the single key-cache row."""

DEFAULT_REDIS_KEY: Final[str] = "firebase_token_auth:public_key_cache"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_id() -> str:
    return uuid.uuid4().hex


class InMemoryStore:
    """Thread-safe in-process AuthStore.

    Tables:
        users: id -> User, with a unique index on firebase_uid
        sessions: id -> Session, scanned by firebase_uid / user_id / expires_at
        public_key_cache: singleton slot -> CachedKeySet

    Every public method runs under one lock, which gives each operation the
    all-or-nothing behaviour of a store transaction.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._users: dict[str, User] = {}
        self._uid_index: dict[str, str] = {}
        self._sessions: dict[str, Session] = {}
        self._key_cache: dict[str, CachedKeySet] = {}

    # ------------------------------------------------------------------
    # Key cache
    # ------------------------------------------------------------------

    def get_cached_keys(self) -> CachedKeySet | None:
        with self._lock:
            return self._key_cache.get(_KEY_CACHE_SLOT)

    def set_cached_keys(self, entry: CachedKeySet) -> None:
        with self._lock:
            self._key_cache[_KEY_CACHE_SLOT] = entry

    def count_cached_key_sets(self) -> int:
        with self._lock:
            return len(self._key_cache)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def upsert_user(self, profile: UserProfile) -> str:
        updates = profile.provided_fields()
        with self._lock:
            user_id = self._uid_index.get(profile.firebase_uid)
            if user_id is not None:
                if updates:
                    self._users[user_id] = self._users[user_id].with_updates(**updates)
                logger.debug("user_updated", user_id=user_id, fields=sorted(updates))
                return user_id

            user_id = _new_id()
            self._users[user_id] = User(
                id=user_id,
                creation_time=_now_ms(),
                firebase_uid=profile.firebase_uid,
                **updates,
            )
            self._uid_index[profile.firebase_uid] = user_id
            logger.info("user_created", user_id=user_id)
            return user_id

    def get_user_by_id(self, user_id: str) -> User | None:
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_firebase_uid(self, firebase_uid: str) -> User | None:
        with self._lock:
            user_id = self._uid_index.get(firebase_uid)
            return self._users.get(user_id) if user_id is not None else None

    def get_users_by_email(self, email: str) -> list[User]:
        with self._lock:
            return [u for u in self._users.values() if u.email == email]

    def update_user_profile(
        self,
        firebase_uid: str,
        *,
        display_name: str | None = None,
        photo_url: str | None = None,
    ) -> None:
        with self._lock:
            user = self.get_user_by_firebase_uid(firebase_uid)
            if user is None:
                raise UserNotFound(firebase_uid)

            updates: dict[str, Any] = {}
            if display_name is not None:
                updates["display_name"] = display_name
            if photo_url is not None:
                updates["photo_url"] = photo_url
            self._users[user.id] = user.with_updates(**updates)

    def delete_user(self, firebase_uid: str) -> None:
        with self._lock:
            user_id = self._uid_index.pop(firebase_uid, None)
            if user_id is None:
                return

            doomed = [s.id for s in self._sessions.values() if s.user_id == user_id]
            for session_id in doomed:
                del self._sessions[session_id]
            del self._users[user_id]
            logger.info("user_deleted", user_id=user_id, sessions_deleted=len(doomed))

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(
        self,
        *,
        user_id: str,
        firebase_uid: str,
        expires_at: int,
        created_at: int,
        last_active_at: int,
    ) -> str:
        with self._lock:
            now = _now_ms()
            expired = [
                s.id
                for s in self._sessions.values()
                if s.firebase_uid == firebase_uid and s.expires_at < now
            ]
            for session_id in expired:
                del self._sessions[session_id]

            session_id = _new_id()
            self._sessions[session_id] = Session(
                id=session_id,
                creation_time=now,
                user_id=user_id,
                firebase_uid=firebase_uid,
                expires_at=expires_at,
                created_at=created_at,
                last_active_at=last_active_at,
            )
            logger.debug("session_created", session_id=session_id, pruned=len(expired))
            return session_id

    def get_session(self, firebase_uid: str) -> Session | None:
        with self._lock:
            # dicts keep insertion order, so the last match is the newest
            latest = None
            for s in self._sessions.values():
                if s.firebase_uid == firebase_uid:
                    latest = s
            if latest is None or latest.expires_at < _now_ms():
                return None
            return latest

    def list_sessions(self, firebase_uid: str) -> list[Session]:
        with self._lock:
            return [s for s in self._sessions.values() if s.firebase_uid == firebase_uid]

    def invalidate_session(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def invalidate_all_sessions(self, firebase_uid: str) -> None:
        with self._lock:
            doomed = [s.id for s in self._sessions.values() if s.firebase_uid == firebase_uid]
            for session_id in doomed:
                del self._sessions[session_id]

    def cleanup_expired_sessions(self) -> int:
        with self._lock:
            now = _now_ms()
            expired = sorted(
                (s for s in self._sessions.values() if s.expires_at < now),
                key=lambda s: s.expires_at,
            )
            for session in expired:
                del self._sessions[session.id]
        logger.info("expired_sessions_removed", count=len(expired))
        return len(expired)


class RedisKeyCache:
    """Redis-backed JWK set cache.

    Stores the CachedKeySet as JSON under one fixed key. ``SET`` overwrites
    the key atomically, so there is never more than one snapshot.

    Example:
        ```python
        import redis

        client = redis.Redis(host="localhost", port=6379)
        key_cache = RedisKeyCache(redis_client=client)
        provider = FirebaseKeyProvider(cache=key_cache)
        ```
    """

    def __init__(self, redis_client: Any, key: str = DEFAULT_REDIS_KEY) -> None:
        """Initialize Redis key cache.

        Args:
            redis_client: Redis client instance (from redis package).
                Must support get() and set() methods.
            key: Redis key holding the snapshot.

        Note:
            The type is Any to avoid a hard dependency on redis package types.
            Any Redis-compatible client (redis-py, fakeredis, etc.) works.
        """
        self._client = redis_client
        self._key = key

    def get_cached_keys(self) -> CachedKeySet | None:
        """Return the cached snapshot, or None if nothing is cached.

        Raises:
            RuntimeError: If the stored data cannot be deserialized.
        """
        data = self._client.get(self._key)
        if data is None:
            return None

        try:
            obj = json.loads(data)
            return CachedKeySet(
                keys=obj["keys"],
                fetched_at=int(obj["fetched_at"]),
                expires_at=int(obj["expires_at"]),
            )
        except (json.JSONDecodeError, ValueError, KeyError, TypeError) as e:
            raise RuntimeError("Failed to deserialize cached key set") from e

    def set_cached_keys(self, entry: CachedKeySet) -> None:
        """Replace the cached snapshot.

        Raises:
            RuntimeError: If the Redis write fails.
        """
        try:
            self._client.set(self._key, json.dumps(asdict(entry)))
        except Exception as e:
            raise RuntimeError("Failed to cache key set in Redis") from e
