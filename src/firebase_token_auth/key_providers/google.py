"""
Google JWK set provider for Firebase ID tokens.

Firebase signs ID tokens with keys published by Google's secure-token
service account. This provider keeps the most recent JWK set in a
KeyCacheStore and refetches it only when the snapshot has gone stale.
"""

from __future__ import annotations

import json
import re
import time
from collections.abc import Sequence
from typing import Final

import requests
import structlog

from ..errors import KeyFetchError, KeyNotFound
from ..models import CachedKeySet
from ..protocols import JWK, KeyCacheStore, KeyProvider
from ..refresh_gate import RefreshGate
from ..stores import InMemoryStore

logger = structlog.get_logger(__name__)

GOOGLE_JWK_URL: Final[str] = (
    "https://www.googleapis.com/service_accounts/v1/jwk/"
    "securetoken@system.gserviceaccount.com"
)

DEFAULT_TTL_SECONDS: Final[int] = 3600
"""TTL used when the response carries no usable max-age directive."""

_MAX_AGE_RE: Final[re.Pattern[str]] = re.compile(r"max-age=(\d+)")


def parse_cache_control_max_age(header_value: str | None) -> int | None:
    """Extract ``max-age`` seconds from a Cache-Control header value.

    The first ``max-age=<digits>`` directive wins. Returns None when the
    header is absent or has no such directive.

    Examples:
        >>> parse_cache_control_max_age("public, max-age=7200, must-revalidate")
        7200
        >>> parse_cache_control_max_age("no-cache") is None
        True
    """
    if not header_value:
        return None
    match = _MAX_AGE_RE.search(header_value)
    if not match:
        return None
    return int(match.group(1))


def select_key(jwk_set: Sequence[JWK], kid: str) -> JWK:
    """Return the JWK whose ``kid`` matches.

    Raises:
        KeyNotFound: If no key carries that kid.
    """
    for jwk in jwk_set:
        if jwk.get("kid") == kid:
            return jwk
    raise KeyNotFound(f"No matching public key found for kid: {kid}")


def _parse_key_set(raw: str) -> list[JWK]:
    obj = json.loads(raw)
    keys = obj.get("keys") if isinstance(obj, dict) else None
    if not isinstance(keys, list):
        raise ValueError("JWK set document has no 'keys' array")
    return [k for k in keys if isinstance(k, dict)]


class FirebaseKeyProvider(KeyProvider):
    """
    Resolves Firebase signing keys from Google's JWK endpoint.

    Resolution Strategy
    -------------------
    1) Cache lookup
        - Read the single cached snapshot from the KeyCacheStore.
        - If present and ``expires_at`` has not passed, use it. No network.

    2) Refresh
        - Otherwise GET the JWK endpoint. Non-2xx, transport errors and
          bodies that are not a ``{"keys": [...]}`` document raise
          KeyFetchError and leave the cache untouched.
        - TTL comes from ``Cache-Control: max-age``, defaulting to one hour.
        - The raw body replaces the cached snapshot.

    3) Selection
        - Linear scan for the key whose ``kid`` matches.
        - A miss raises KeyNotFound, unless ``refresh_on_unknown_kid`` is
          set and the RefreshGate allows one forced refetch.

    Parameters
    ----------
    cache : KeyCacheStore
        Where the snapshot lives. Defaults to a private InMemoryStore.

    session : requests.Session
        HTTP session used for the fetch.

    jwks_url : str
        JWK endpoint; Google's secure-token endpoint by default.

    default_ttl_seconds : int
        TTL when the response carries no max-age.

    timeout : float | None
        Optional HTTP timeout. None leaves deadlines to the host runtime.

    refresh_on_unknown_kid : bool
        Force one gated refetch when a fresh snapshot lacks the kid.

    refresh_gate : RefreshGate
        Gate for forced refetches. A default RefreshGate when omitted.

    Notes
    -----
    Concurrent refreshes racing on a stale snapshot both fetch and both
    write; the last writer wins. Keys are public, so the only cost is a
    redundant request.
    """

    def __init__(
        self,
        cache: KeyCacheStore | None = None,
        session: requests.Session | None = None,
        jwks_url: str = GOOGLE_JWK_URL,
        default_ttl_seconds: int = DEFAULT_TTL_SECONDS,
        timeout: float | None = None,
        refresh_on_unknown_kid: bool = False,
        refresh_gate: RefreshGate | None = None,
    ) -> None:
        self._cache = cache if cache is not None else InMemoryStore()
        self._session = session or requests.Session()
        self._url = jwks_url
        self._default_ttl = default_ttl_seconds
        self._timeout = timeout
        self._refresh_on_unknown_kid = refresh_on_unknown_kid
        self._gate = refresh_gate if refresh_gate is not None else RefreshGate()

    def get_or_refresh(self) -> list[JWK]:
        """Return the current JWK set, fetching it if absent or stale.

        Raises:
            KeyFetchError: If a fetch was needed and failed.
        """
        try:
            entry = self._cache.get_cached_keys()
        except RuntimeError as e:
            # an unreadable snapshot is treated as a miss and overwritten below
            logger.warning("jwks_cache_unreadable", error=str(e))
            entry = None
        now = int(time.time() * 1000)

        if entry is not None and not entry.is_stale(now):
            try:
                return _parse_key_set(entry.keys)
            except ValueError:
                logger.warning("jwks_cache_corrupt", fetched_at=entry.fetched_at)

        return self._refresh()

    def get_key_for_token(self, kid: str) -> JWK:
        jwk_set = self.get_or_refresh()
        try:
            return select_key(jwk_set, kid)
        except KeyNotFound:
            logger.info("jwks_kid_not_found", kid=kid, key_count=len(jwk_set))
            if not self._refresh_on_unknown_kid:
                raise

        if not self._gate.allow():
            raise KeyNotFound(f"No matching public key found for kid: {kid} (refresh throttled)")

        return select_key(self._refresh(), kid)

    def _refresh(self) -> list[JWK]:
        try:
            response = self._session.get(self._url, timeout=self._timeout)
        except requests.RequestException as e:
            logger.error("jwks_fetch_failed", url=self._url, error=str(e))
            raise KeyFetchError(f"Failed to fetch Google public keys: {e}") from e

        if not response.ok:
            logger.error("jwks_fetch_failed", url=self._url, status=response.status_code)
            raise KeyFetchError(f"Failed to fetch Google public keys: {response.status_code}")

        raw = response.text
        try:
            keys = _parse_key_set(raw)
        except ValueError as e:
            logger.error("jwks_fetch_failed", url=self._url, error="malformed key set")
            raise KeyFetchError("Failed to fetch Google public keys: malformed key set") from e

        max_age = parse_cache_control_max_age(response.headers.get("Cache-Control"))
        ttl = max_age if max_age is not None else self._default_ttl
        now = int(time.time() * 1000)

        self._cache.set_cached_keys(
            CachedKeySet(keys=raw, fetched_at=now, expires_at=now + ttl * 1000)
        )
        logger.info("jwks_refreshed", ttl_seconds=ttl, key_count=len(keys))
        return keys
