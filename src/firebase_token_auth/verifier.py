"""Firebase ID token verification.

This module provides the verifier that:
- Parses the compact token and checks the header algorithm
- Resolves the signing key for the header's kid via an injected KeyProvider
- Verifies the RS256 signature
- Validates the Firebase claims against the expected project

Persistence is not its concern; see FirebaseAuthService for the flow that
records users and sessions after a successful verification.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from .claims import expected_issuer, validate_claims
from .errors import InvalidSignature, InvalidToken, KeyImportError, UnsupportedAlgorithm
from .jwt_parser import TokenPayload, parse_jwt
from .signature import import_key, verify_signature

if TYPE_CHECKING:
    from .protocols import KeyProvider

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class FirebaseVerifyOptions:
    """Configuration for Firebase ID token validation.

    Attributes:
        project_id: Firebase project id. Tokens must carry it as ``aud`` and
            be issued by ``https://securetoken.google.com/<project_id>``.
        algorithms: Allowed signing algorithms. Firebase signs with RS256
            only, and this verifier supports nothing else.

    Example:
        ```python
        options = FirebaseVerifyOptions(project_id="my-firebase-project")
        verifier = FirebaseTokenVerifier(key_provider=provider, options=options)
        ```
    """

    project_id: str
    algorithms: tuple[str, ...] = ("RS256",)

    def __post_init__(self) -> None:
        if not self.project_id:
            raise ValueError("project_id must not be empty")
        if self.algorithms != ("RS256",):
            raise ValueError(f"only RS256 is supported, got {self.algorithms}")

    @property
    def audience(self) -> str:
        return self.project_id

    @property
    def issuer(self) -> str:
        return expected_issuer(self.project_id)


class FirebaseTokenVerifier:
    """Verifies Firebase ID tokens.

    This class implements the TokenVerifier protocol and delegates key
    resolution to an injected KeyProvider.

    Architecture:
        1. Parse token (structure, header, payload, signature bytes)
        2. Reject any alg other than RS256
        3. Resolve the JWK for the header's kid via KeyProvider
        4. Import the key and verify the signature
        5. Validate claims (exp, iat, aud, iss, sub, auth_time)

    Every failure surfaces as a specific InvalidToken subclass. Nothing is
    retried.

    Thread Safety:
        Thread-safe assuming the KeyProvider is. Options are immutable.

    Example:
        ```python
        verifier = FirebaseTokenVerifier(
            key_provider=FirebaseKeyProvider(cache=store),
            options=FirebaseVerifyOptions(project_id="my-project"),
        )

        try:
            payload = verifier.verify(raw_token)
            uid = payload.sub
        except ExpiredToken:
            # Client should refresh its ID token
        except InvalidToken as e:
            log.info("rejected", code=e.code)
        ```
    """

    def __init__(self, key_provider: KeyProvider, options: FirebaseVerifyOptions) -> None:
        self._keys = key_provider
        self._opt = options

    @property
    def options(self) -> FirebaseVerifyOptions:
        return self._opt

    def verify(self, token: str, *, project_id: str | None = None) -> TokenPayload:
        """Verify a Firebase ID token and return its payload.

        Args:
            token: Raw compact JWT.
            project_id: Expected project; defaults to the configured one.

        Returns:
            The verified payload.

        Raises:
            FormatError: Token is structurally malformed.
            UnsupportedAlgorithm: Header alg is not RS256.
            KeyFetchError, KeyNotFound: The signing key could not be resolved.
            InvalidSignature: Key import failed or the signature does not match.
            ClaimsError: A claim failed validation (ExpiredToken etc.).
        """
        expected_project = project_id or self._opt.project_id
        try:
            parsed = parse_jwt(token)

            if parsed.header.alg not in self._opt.algorithms:
                raise UnsupportedAlgorithm(f"Unsupported algorithm: {parsed.header.alg}")

            jwk = self._keys.get_key_for_token(parsed.header.kid)

            try:
                key = import_key(jwk)
            except KeyImportError as e:
                raise InvalidSignature(f"Invalid token signature: {e}") from e

            if not verify_signature(parsed.signed_content, parsed.signature, key):
                raise InvalidSignature

            validate_claims(parsed.payload, expected_project)

        except InvalidToken as e:
            logger.info("token_verification_failed", code=e.code, reason=str(e))
            raise

        logger.debug("token_verified", uid=parsed.payload.sub, kid=parsed.header.kid)
        return parsed.payload
