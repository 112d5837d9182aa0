"""RS256 signature verification on top of PyJWT's RSA algorithm.

Google publishes its Firebase signing keys as a JWK set. A key is imported
as an RSA public key (private material is never kept) and used to check a
RSASSA-PKCS1-v1_5 / SHA-256 signature over the token's signed content.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Final, TypeAlias

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from jwt.algorithms import RSAAlgorithm
from jwt.exceptions import InvalidKeyError

from .errors import KeyImportError

KeyHandle: TypeAlias = RSAPublicKey
"""Imported verification key."""

_RS256: Final[RSAAlgorithm] = RSAAlgorithm(RSAAlgorithm.SHA256)


def import_key(jwk: Mapping[str, Any]) -> KeyHandle:
    """Import a JWK as a verify-only RS256 public key.

    Raises:
        KeyImportError: If the JWK is malformed, not an RSA key, or declared
            for another algorithm or usage.
    """
    alg = jwk.get("alg")
    if alg is not None and alg != "RS256":
        raise KeyImportError(f"Failed to import public key: unsupported alg {alg!r}")

    use = jwk.get("use")
    if use is not None and use != "sig":
        raise KeyImportError(f"Failed to import public key: unsupported use {use!r}")

    try:
        key = RSAAlgorithm.from_jwk(json.dumps(dict(jwk)))
    except (InvalidKeyError, ValueError, TypeError, KeyError) as e:
        raise KeyImportError(f"Failed to import public key: {e}") from e

    if isinstance(key, RSAPrivateKey):
        return key.public_key()
    return key


def verify_signature(signed_content: str, signature: bytes, key: KeyHandle) -> bool:
    """Return whether ``signature`` is a valid RS256 signature of ``signed_content``.

    A mismatch yields False rather than an exception. Callers must treat
    False as a rejected token.
    """
    return _RS256.verify(signed_content.encode("utf-8"), key, signature)
