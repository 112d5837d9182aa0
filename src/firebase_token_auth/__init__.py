"""
Firebase ID token verification with a local user/session record.

High-level flow (per sign-in)
-----------------------------
1. `parse_jwt(token)` splits the compact JWT and decodes header, payload and
   signature. The header must carry `alg` and `kid`.
2. The header `alg` must be RS256.
3. `FirebaseKeyProvider` returns Google's JWK set from the key cache, or
   refetches it when the snapshot is stale (TTL from `Cache-Control`), and
   selects the key matching `kid`.
4. The JWK is imported as an RSA public key and the signature is checked.
5. `validate_claims` checks exp, iat, aud, iss, sub and auth_time against
   the Firebase project.
6. `FirebaseAuthService.verify_token` upserts the user keyed by `sub` and
   opens a session expiring with the token.

Security notes
--------------
- Never trust claims until signature verification succeeds.
- Only RS256 is accepted (no algorithm negotiation).
- `aud` and `iss` pin the token to *your* Firebase project.
- No clock-skew leeway is applied.

Example usage
-------------

.. code-block:: python

    from firebase_token_auth import (
        FirebaseAuth,
        FirebaseAuthService,
        FirebaseKeyProvider,
        FirebaseTokenVerifier,
        FirebaseVerifyOptions,
        InMemoryStore,
    )

    store = InMemoryStore()
    verifier = FirebaseTokenVerifier(
        key_provider=FirebaseKeyProvider(cache=store),
        options=FirebaseVerifyOptions(project_id="my-firebase-project"),
    )
    service = FirebaseAuthService(verifier, store)

    firebase_auth = FirebaseAuth(service)
    firebase_auth.init_app(app, url_prefix="/auth")

    @app.get("/me")
    @firebase_auth.require(allow_anonymous=False)
    def me():
        return {"uid": g.firebase_claims.sub}
"""

# Codec and parsing
from .base64url import base64url_decode
from .claims import expected_issuer, validate_claims

# Config
from .config import FirebaseSettings, get_env_var

# Errors
from .errors import (
    AuthError,
    ClaimsError,
    ConfigurationError,
    ExpiredToken,
    Forbidden,
    FormatError,
    HeaderDecodeError,
    IdentityToolkitError,
    InvalidAudience,
    InvalidAuthTime,
    InvalidFormat,
    InvalidIssuer,
    InvalidSignature,
    InvalidSubject,
    InvalidToken,
    IssuedInFuture,
    KeyFetchError,
    KeyImportError,
    KeyNotFound,
    MissingHeaderFields,
    MissingToken,
    PayloadDecodeError,
    SignatureDecodeError,
    UnsupportedAlgorithm,
    UserNotFound,
)

# Extractors
from .extractors import (
    DEFAULT_COOKIE_NAME,
    HOSTING_SESSION_COOKIE,
    BearerExtractor,
    CookieExtractor,
    FirstOfExtractor,
    id_token_from_authorization,
)

# Flask extension
from .flask_extension import FirebaseAuth, get_verified_claims

# REST passthroughs
from .identity_toolkit import IdentityToolkitClient
from .jwt_parser import JwtHeader, ParsedJwt, TokenPayload, parse_jwt

# Key providers
from .key_providers import (
    DEFAULT_TTL_SECONDS,
    GOOGLE_JWK_URL,
    FirebaseKeyProvider,
    parse_cache_control_max_age,
    select_key,
)

# Logging
from .logging_setup import configure_logging

# Models
from .models import CachedKeySet, Session, User, UserProfile

# Protocols
from .protocols import (
    JWK,
    AuthStore,
    Extractor,
    KeyCacheStore,
    KeyProvider,
    TokenVerifier,
    ViewFunc,
)

# Refresh gate
from .refresh_gate import RefreshGate

# Service
from .service import FirebaseAuthService, profile_from_payload
from .signature import import_key, verify_signature

# Stores
from .stores import InMemoryStore, RedisKeyCache

# Verifier
from .verifier import FirebaseTokenVerifier, FirebaseVerifyOptions

__all__ = [
    # Errors
    "AuthError",
    "ClaimsError",
    "ConfigurationError",
    "ExpiredToken",
    "Forbidden",
    "FormatError",
    "HeaderDecodeError",
    "IdentityToolkitError",
    "InvalidAudience",
    "InvalidAuthTime",
    "InvalidFormat",
    "InvalidIssuer",
    "InvalidSignature",
    "InvalidSubject",
    "InvalidToken",
    "IssuedInFuture",
    "KeyFetchError",
    "KeyImportError",
    "KeyNotFound",
    "MissingHeaderFields",
    "MissingToken",
    "PayloadDecodeError",
    "SignatureDecodeError",
    "UnsupportedAlgorithm",
    "UserNotFound",
    # Protocols
    "JWK",
    "AuthStore",
    "Extractor",
    "KeyCacheStore",
    "KeyProvider",
    "TokenVerifier",
    "ViewFunc",
    # Codec, parsing, claims, signature
    "base64url_decode",
    "JwtHeader",
    "ParsedJwt",
    "TokenPayload",
    "parse_jwt",
    "expected_issuer",
    "validate_claims",
    "import_key",
    "verify_signature",
    # Key providers
    "DEFAULT_TTL_SECONDS",
    "GOOGLE_JWK_URL",
    "FirebaseKeyProvider",
    "parse_cache_control_max_age",
    "select_key",
    "RefreshGate",
    # Stores and models
    "InMemoryStore",
    "RedisKeyCache",
    "CachedKeySet",
    "Session",
    "User",
    "UserProfile",
    # Verifier and service
    "FirebaseTokenVerifier",
    "FirebaseVerifyOptions",
    "FirebaseAuthService",
    "profile_from_payload",
    "IdentityToolkitClient",
    # Extractors
    "BearerExtractor",
    "CookieExtractor",
    "FirstOfExtractor",
    "id_token_from_authorization",
    "DEFAULT_COOKIE_NAME",
    "HOSTING_SESSION_COOKIE",
    # Flask extension
    "FirebaseAuth",
    "get_verified_claims",
    # Config and logging
    "FirebaseSettings",
    "get_env_var",
    "configure_logging",
]
