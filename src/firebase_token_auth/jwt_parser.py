"""Structural parsing of compact Firebase ID tokens.

Parsing only checks shape and encoding: three dot-separated segments, a JSON
header carrying ``alg`` and ``kid``, a JSON payload, and a decodable
signature. Nothing here is trusted until the signature has been checked and
the claims validated.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .base64url import base64url_decode
from .errors import (
    HeaderDecodeError,
    InvalidFormat,
    MissingHeaderFields,
    PayloadDecodeError,
    SignatureDecodeError,
)

_KNOWN_CLAIMS = frozenset(
    {
        "iss",
        "aud",
        "sub",
        "iat",
        "exp",
        "auth_time",
        "email",
        "email_verified",
        "name",
        "picture",
        "phone_number",
        "firebase",
    }
)


@dataclass(frozen=True, slots=True)
class JwtHeader:
    alg: str
    kid: str
    typ: str | None = None


@dataclass(frozen=True, slots=True)
class TokenPayload:
    """Decoded token payload.

    Known Firebase claims are exposed as attributes. They hold whatever the
    token carried (no type coercion happens at parse time); the claims
    validator is responsible for rejecting wrong types. Every other claim
    lands in ``extra`` untouched.

    Attributes:
        iss: Issuer, ``https://securetoken.google.com/<project-id>``.
        aud: Audience, the Firebase project id.
        sub: Subject, the Firebase uid.
        iat: Issued-at time in seconds.
        exp: Expiration time in seconds.
        auth_time: Time the user authenticated, in seconds.
        firebase: The ``firebase`` claim (sign-in provider, identities).
        extra: Unrecognised claims.
    """

    iss: Any = None
    aud: Any = None
    sub: Any = None
    iat: Any = None
    exp: Any = None
    auth_time: Any = None
    email: Any = None
    email_verified: Any = None
    name: Any = None
    picture: Any = None
    phone_number: Any = None
    firebase: Mapping[str, Any] = field(default_factory=dict)
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> TokenPayload:
        firebase = claims.get("firebase")
        return cls(
            iss=claims.get("iss"),
            aud=claims.get("aud"),
            sub=claims.get("sub"),
            iat=claims.get("iat"),
            exp=claims.get("exp"),
            auth_time=claims.get("auth_time"),
            email=claims.get("email"),
            email_verified=claims.get("email_verified"),
            name=claims.get("name"),
            picture=claims.get("picture"),
            phone_number=claims.get("phone_number"),
            firebase=MappingProxyType(dict(firebase)) if isinstance(firebase, dict) else MappingProxyType({}),
            extra=MappingProxyType({k: v for k, v in claims.items() if k not in _KNOWN_CLAIMS}),
        )

    @property
    def sign_in_provider(self) -> str | None:
        provider = self.firebase.get("sign_in_provider")
        return provider if isinstance(provider, str) else None

    def to_dict(self) -> dict[str, Any]:
        """Rebuild the claims mapping (known claims that were present plus extras)."""
        claims: dict[str, Any] = {
            name: getattr(self, name)
            for name in _KNOWN_CLAIMS
            if name != "firebase" and getattr(self, name) is not None
        }
        if self.firebase:
            claims["firebase"] = dict(self.firebase)
        claims.update(self.extra)
        return claims


@dataclass(frozen=True, slots=True)
class ParsedJwt:
    """A structurally valid JWT.

    Attributes:
        header: Decoded header.
        payload: Decoded payload.
        signed_content: The literal ``header.payload`` text from the token.
            These are the exact bytes the issuer signed.
        signature: Raw signature bytes.
    """

    header: JwtHeader
    payload: TokenPayload
    signed_content: str
    signature: bytes


def _decode_json_segment(segment: str) -> dict[str, Any]:
    obj = json.loads(base64url_decode(segment).decode("utf-8"))
    if not isinstance(obj, dict):
        raise ValueError("JWT segment is not a JSON object")
    return obj


def parse_jwt(token: str) -> ParsedJwt:
    """Split and decode a compact JWT.

    Raises:
        InvalidFormat: The token does not have exactly three segments.
        HeaderDecodeError: The header is not base64url-encoded UTF-8 JSON.
        PayloadDecodeError: The payload is not base64url-encoded UTF-8 JSON.
        MissingHeaderFields: The header lacks a non-empty ``alg`` or ``kid``.
        SignatureDecodeError: The signature segment is not valid base64url.
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise InvalidFormat

    header_b64, payload_b64, signature_b64 = parts

    # UnicodeDecodeError and JSONDecodeError are both ValueErrors; deeply
    # nested JSON exhausts the decoder stack instead
    try:
        raw_header = _decode_json_segment(header_b64)
    except (ValueError, RecursionError) as e:
        raise HeaderDecodeError from e

    try:
        raw_payload = _decode_json_segment(payload_b64)
    except (ValueError, RecursionError) as e:
        raise PayloadDecodeError from e

    alg = raw_header.get("alg")
    kid = raw_header.get("kid")
    if not alg or not kid or not isinstance(alg, str) or not isinstance(kid, str):
        raise MissingHeaderFields

    try:
        signature = base64url_decode(signature_b64)
    except ValueError as e:
        raise SignatureDecodeError from e

    typ = raw_header.get("typ")
    return ParsedJwt(
        header=JwtHeader(alg=alg, kid=kid, typ=typ if isinstance(typ, str) else None),
        payload=TokenPayload.from_claims(raw_payload),
        signed_content=f"{header_b64}.{payload_b64}",
        signature=signature,
    )
