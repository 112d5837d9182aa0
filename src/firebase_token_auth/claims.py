"""Validation of Firebase ID token claims.

Rules are checked in a fixed order and the first violation wins:

1. ``exp`` present and strictly in the future
2. ``iat`` present and not in the future
3. ``aud`` equals the project id
4. ``iss`` equals ``https://securetoken.google.com/<project id>``
5. ``sub`` is a non-empty string
6. ``auth_time`` present and not in the future

Comparisons use the wall clock in whole seconds with no leeway.
"""

from __future__ import annotations

import math
import time
from typing import Any, Final

from .errors import (
    ExpiredToken,
    InvalidAudience,
    InvalidAuthTime,
    InvalidIssuer,
    InvalidSubject,
    IssuedInFuture,
)
from .jwt_parser import TokenPayload

ISSUER_PREFIX: Final[str] = "https://securetoken.google.com/"


def expected_issuer(project_id: str) -> str:
    return f"{ISSUER_PREFIX}{project_id}"


def _is_timestamp(value: Any) -> bool:
    # json.loads accepts NaN and Infinity, which compare false against any bound
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_claims(payload: TokenPayload, project_id: str) -> None:
    """Check the payload against the expected Firebase project.

    Args:
        payload: Decoded token payload. Its signature must already be verified.
        project_id: Firebase project id the token must have been minted for.

    Raises:
        ExpiredToken, IssuedInFuture, InvalidAudience, InvalidIssuer,
        InvalidSubject, InvalidAuthTime: The first rule that failed.
    """
    now = int(time.time())

    if not _is_timestamp(payload.exp) or payload.exp <= now:
        raise ExpiredToken

    if not _is_timestamp(payload.iat) or payload.iat > now:
        raise IssuedInFuture

    if payload.aud != project_id:
        raise InvalidAudience(f"Invalid audience: expected {project_id}, got {payload.aud}")

    issuer = expected_issuer(project_id)
    if payload.iss != issuer:
        raise InvalidIssuer(f"Invalid issuer: expected {issuer}, got {payload.iss}")

    if not isinstance(payload.sub, str) or not payload.sub:
        raise InvalidSubject

    if not _is_timestamp(payload.auth_time) or payload.auth_time > now:
        raise InvalidAuthTime
