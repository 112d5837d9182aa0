"""Flask extension for Firebase authentication.

This module is the integration point between the verification core and
Flask applications. It provides:

- FirebaseAuth: registers the auth HTTP routes and protects views
- get_verified_claims: verifies an ID token held in a cookie

Routes registered under the configured prefix (``/auth`` by default):

- ``POST <prefix>/verify`` with JSON ``{"idToken": ...}``: verifies the
  token, records the user and a session, answers 200 with the user, 400
  without ``idToken``, 401 with ``{"error": ...}`` on verification failure.
- ``GET <prefix>/user?firebaseUid=...``: 200 with the user, 404 when
  unknown, 400 without the parameter.
"""

from __future__ import annotations

from functools import wraps
from typing import TYPE_CHECKING, Any, Final

import structlog
from flask import Blueprint, Flask, abort, g, jsonify, request

from .errors import AuthError, Forbidden
from .extractors import DEFAULT_COOKIE_NAME, BearerExtractor, CookieExtractor

if TYPE_CHECKING:
    from .jwt_parser import TokenPayload
    from .protocols import Extractor, TokenVerifier, ViewFunc
    from .service import FirebaseAuthService

logger = structlog.get_logger(__name__)

_EXT_KEY: Final[str] = "firebase_auth"
"""Flask extensions registry key for FirebaseAuth."""


class FirebaseAuth:
    """
    Flask glue for Firebase ID token authentication.

    Responsibilities:
    - Serve the verify / user routes backed by FirebaseAuthService
    - Protect views: extract token, verify it, store the payload in
      ``flask.g.firebase_claims``
    - Convert domain errors to HTTP responses (abort)

    Pattern:
        firebase_auth = FirebaseAuth(service)
        firebase_auth.init_app(app, url_prefix="/auth")

    Usage:
        @app.get("/me")
        @firebase_auth.require(allow_anonymous=False)
        def me(): ...
    """

    def __init__(
        self,
        service: FirebaseAuthService,
        extractor: Extractor | None = None,
    ) -> None:
        self._service = service
        self._extractor: Extractor = extractor or BearerExtractor()

    @property
    def service(self) -> FirebaseAuthService:
        return self._service

    def init_app(
        self,
        app: Flask,
        *,
        url_prefix: str = "/auth",
        service: FirebaseAuthService | None = None,
        extractor: Extractor | None = None,
    ) -> None:
        """Register the auth routes and the extension on ``app``.

        Args:
            app: The Flask application instance.
            url_prefix: Path prefix for the verify/user routes.
            service: Replaces the service given at construction.
            extractor: Replaces the token extractor.
        """
        if service is not None:
            self._service = service
        if extractor is not None:
            self._extractor = extractor

        app.register_blueprint(self._blueprint(), url_prefix=url_prefix)
        app.extensions[_EXT_KEY] = self

    def _blueprint(self) -> Blueprint:
        bp = Blueprint("firebase_auth", __name__)

        @bp.post("/verify")
        def verify():
            body = request.get_json(silent=True)
            id_token = body.get("idToken") if isinstance(body, dict) else None
            if not id_token or not isinstance(id_token, str):
                return jsonify({"error": "idToken is required"}), 400

            try:
                user = self._service.verify_token(id_token)
            except AuthError as e:
                return jsonify({"error": e.description}), 401
            except Exception:
                logger.exception("verify_route_failed")
                return jsonify({"error": "Authentication failed"}), 401

            return jsonify(user.to_dict() if user else None), 200

        @bp.get("/user")
        def user():
            firebase_uid = request.args.get("firebaseUid")
            if not firebase_uid:
                return jsonify({"error": "firebaseUid parameter is required"}), 400

            found = self._service.get_user_by_firebase_uid(firebase_uid)
            if found is None:
                return jsonify(None), 404
            return jsonify(found.to_dict()), 200

        return bp

    def require(
        self,
        *,
        allow_anonymous: bool = True,
        require_verified_email: bool = False,
    ):
        """Decorator to protect Flask routes with Firebase ID token authentication.

        Verification behavior:
        - Extract token using configured extractor
        - Verify token (signature + claims); no user or session is written
        - On success: store the payload in ``flask.g.firebase_claims``

        Requirements:
        - ``allow_anonymous=False`` rejects anonymous sign-ins with 403
        - ``require_verified_email=True`` rejects tokens without
          ``email_verified: true`` with 403

        Error mapping:
        - ``MissingToken``  -> HTTP 401
        - ``InvalidToken``  -> HTTP 401 (with the specific reason)
        - ``Forbidden``     -> HTTP 403
        - Any other error   -> HTTP 401 ("Authentication failed")
        """

        def decorator(view: ViewFunc) -> ViewFunc:
            @wraps(view)
            def wrapper(*args: Any, **kwargs: Any) -> Any:
                claims = _authenticate(self._extractor, self._service.verifier)
                g.firebase_claims = claims

                try:
                    if not allow_anonymous and claims.sign_in_provider == "anonymous":
                        raise Forbidden("Anonymous users are not allowed")
                    if require_verified_email and claims.email_verified is not True:
                        raise Forbidden("Email address is not verified")

                except Forbidden as e:
                    abort(e.error_code, description=e.description)

                return view(*args, **kwargs)

            return wrapper

        return decorator


def _authenticate(extractor: Extractor, verifier: TokenVerifier) -> TokenPayload:
    """Extract and verify the request's ID token, aborting on failure."""
    try:
        return verifier.verify(extractor.extract())
    except AuthError as e:
        abort(e.error_code, description=e.description)
    except Exception:
        logger.exception("route_authentication_failed")
        abort(401, description="Authentication failed")


def get_verified_claims(
    verifier: TokenVerifier,
    *,
    cookie_name: str = DEFAULT_COOKIE_NAME,
) -> TokenPayload:
    """
    Return the verified payload of the ID token held in a cookie.

    For views that are not wrapped in ``FirebaseAuth.require`` but still
    need the caller's identity. Aborts with 401 when the cookie is missing
    or the token fails verification.
    """
    return _authenticate(CookieExtractor(cookie_name), verifier)
