"""
Key provider implementations for resolving Firebase signing keys.

This package contains implementations of the KeyProvider protocol.
"""

from .google import (
    DEFAULT_TTL_SECONDS,
    GOOGLE_JWK_URL,
    FirebaseKeyProvider,
    parse_cache_control_max_age,
    select_key,
)

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "GOOGLE_JWK_URL",
    "FirebaseKeyProvider",
    "parse_cache_control_max_age",
    "select_key",
]
