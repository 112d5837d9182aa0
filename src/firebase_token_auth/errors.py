"""Authentication and verification errors.

This module defines the exception hierarchy for Firebase ID token
verification. Every verification failure derives from InvalidToken, which
in turn derives from AuthError, so callers can catch at whatever level of
detail they need.

Each error carries:
    code: Stable snake_case identifier of the failure kind. Use it for
        logging, metrics and tests.
    error_code: HTTP status the Flask layer should answer with.
    description: Human-readable reason (the exception message).

Security Note:
    The specific reason is meant for server-side logs. The HTTP boundary may
    still decide to hand clients a more generic message.
"""

from __future__ import annotations

from typing import ClassVar


class AuthError(Exception):
    """Base exception for all authentication and authorization failures.

    Application code can catch this single type to handle any auth failure
    generically.
    """

    code: ClassVar[str] = "auth_error"
    error_code: ClassVar[int] = 401
    default_message: ClassVar[str] = "Authentication failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def description(self) -> str:
        return str(self)


class MissingToken(AuthError):  # noqa: N818
    """Raised when no token is found on a protected request.

    This occurs when:
    - The Authorization header is missing
    - The Authorization header is not "Bearer <token>"
    - The configured cookie is missing
    """

    code = "missing_token"
    default_message = "Missing token"


class InvalidToken(AuthError):  # noqa: N818
    """Raised when a token is present but cannot be verified.

    Parent of every failure kind produced by the verification pipeline.
    """

    code = "invalid_token"
    default_message = "Invalid token"


class Forbidden(AuthError):  # noqa: N818
    """Raised when a verified token does not satisfy a route's requirements.

    This is the only error that should result in 403. All others are 401.
    """

    code = "forbidden"
    error_code = 403
    default_message = "Forbidden"


# ============================================================================
# Structural errors
# ============================================================================


class FormatError(InvalidToken):
    """The token is not a well-formed compact JWT."""

    code = "format_error"
    default_message = "Invalid JWT"


class InvalidFormat(FormatError):  # noqa: N818
    code = "invalid_format"
    default_message = "Invalid JWT: expected 3 parts"


class HeaderDecodeError(FormatError):
    code = "header_decode_error"
    default_message = "Invalid JWT: failed to decode header"


class PayloadDecodeError(FormatError):
    code = "payload_decode_error"
    default_message = "Invalid JWT: failed to decode payload"


class MissingHeaderFields(FormatError):  # noqa: N818
    code = "missing_header_fields"
    default_message = "Invalid JWT header: missing alg or kid"


class SignatureDecodeError(FormatError):
    code = "signature_decode_error"
    default_message = "Invalid JWT: failed to decode signature"


# ============================================================================
# Algorithm, key and signature errors
# ============================================================================


class UnsupportedAlgorithm(InvalidToken):  # noqa: N818
    code = "unsupported_algorithm"
    default_message = "Unsupported algorithm"


class KeyFetchError(InvalidToken):
    """The Google public key endpoint was unreachable or answered non-2xx."""

    code = "key_fetch_error"
    default_message = "Failed to fetch Google public keys"


class KeyNotFound(InvalidToken):  # noqa: N818
    """No key in the JWK set matches the token's kid.

    Usually a sign of provider key rotation or a forged kid.
    """

    code = "key_not_found"
    default_message = "No matching public key found"


class KeyImportError(InvalidToken):
    code = "key_import_error"
    default_message = "Failed to import public key"


class InvalidSignature(InvalidToken):  # noqa: N818
    code = "invalid_signature"
    default_message = "Invalid token signature"


# ============================================================================
# Claims errors
# ============================================================================


class ClaimsError(InvalidToken):
    """A time-based or identity-based claim failed validation."""

    code = "invalid_claims"
    default_message = "Invalid token claims"


class ExpiredToken(ClaimsError):  # noqa: N818
    """Raised when the token's exp claim is missing or not in the future.

    Clients should refresh their ID token and retry.
    """

    code = "expired"
    default_message = "Token has expired"


class IssuedInFuture(ClaimsError):  # noqa: N818
    code = "issued_in_future"
    default_message = "Token issued in the future"


class InvalidAudience(ClaimsError):  # noqa: N818
    code = "invalid_audience"
    default_message = "Invalid audience"


class InvalidIssuer(ClaimsError):  # noqa: N818
    code = "invalid_issuer"
    default_message = "Invalid issuer"


class InvalidSubject(ClaimsError):  # noqa: N818
    code = "invalid_subject"
    default_message = "Invalid subject: sub must be a non-empty string"


class InvalidAuthTime(ClaimsError):  # noqa: N818
    code = "invalid_auth_time"
    default_message = "Invalid auth_time"


# ============================================================================
# Non-verification errors
# ============================================================================


class UserNotFound(LookupError):  # noqa: N818
    """Raised when a profile update targets an unknown firebase uid."""

    def __init__(self, firebase_uid: str) -> None:
        super().__init__(f"User not found: {firebase_uid}")
        self.firebase_uid = firebase_uid


class IdentityToolkitError(RuntimeError):
    """Raised when a Firebase REST call answers with a non-2xx status.

    Attributes:
        operation: Name of the failed operation (e.g. "getUserData").
        status_code: HTTP status returned by Firebase.
        body: Raw response body text, as returned by Firebase.
    """

    def __init__(self, operation: str, status_code: int, body: str) -> None:
        super().__init__(f"Firebase {operation} failed: {body}")
        self.operation = operation
        self.status_code = status_code
        self.body = body


class ConfigurationError(RuntimeError):
    """Raised when required configuration (env vars, API key) is missing."""
