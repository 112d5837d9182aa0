"""
Integration tests for the Firebase demo Flask application.

Tests the sign-in flow and protected routes end to end with real RS256
tokens. The Google key set is pre-seeded in the app's store, so no request
leaves the process.
"""

import json
import time
from unittest.mock import patch

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from flask import Flask
from jwt.algorithms import RSAAlgorithm

from firebase_token_auth import CachedKeySet

PROJECT_ID = "demo-project"


@pytest.fixture(scope="module")
def signing_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def app_with_auth(signing_key: rsa.RSAPrivateKey) -> Flask:
    """Create the demo app with Firebase configuration."""
    with patch.dict(
        "os.environ",
        {
            "FIREBASE_PROJECT_ID": PROJECT_ID,
            "FIREBASE_AUTH_PATH_PREFIX": "/auth",
            "LOG_FORMAT": "console",
        },
    ):
        # Import here so environment variables are set
        from examples.firebase_demo import app_config
        from examples.firebase_demo.backend import create_app

        app = create_app()

    jwk = json.loads(RSAAlgorithm.to_jwk(signing_key.public_key()))
    jwk.update({"kid": "test-kid", "alg": "RS256", "use": "sig"})
    now_ms = int(time.time() * 1000)
    app_config.store.set_cached_keys(
        CachedKeySet(
            keys=json.dumps({"keys": [jwk]}),
            fetched_at=now_ms,
            expires_at=now_ms + 3_600_000,
        )
    )

    app.config["TESTING"] = True
    return app


@pytest.fixture
def id_token(signing_key: rsa.RSAPrivateKey):
    """Sign a Firebase ID token for the demo project."""

    def _make(uid: str = "uid-1", provider: str = "password", **overrides) -> str:
        now = int(time.time())
        claims = {
            "iss": f"https://securetoken.google.com/{PROJECT_ID}",
            "aud": PROJECT_ID,
            "sub": uid,
            "iat": now - 5,
            "exp": now + 3600,
            "auth_time": now - 5,
            "email": f"{uid}@example.com",
            "email_verified": True,
            "firebase": {"sign_in_provider": provider},
        }
        claims.update(overrides)
        return jwt.encode(claims, signing_key, algorithm="RS256", headers={"kid": "test-kid"})

    return _make


class TestSignIn:
    """Test the verify and user routes."""

    def test_verify_creates_user(self, app_with_auth: Flask, id_token):
        client = app_with_auth.test_client()

        response = client.post("/auth/verify", json={"idToken": id_token("alice")})

        assert response.status_code == 200
        data = response.get_json()
        assert data["firebaseUid"] == "alice"
        assert data["email"] == "alice@example.com"

        lookup = client.get("/auth/user?firebaseUid=alice")
        assert lookup.status_code == 200
        assert lookup.get_json()["id"] == data["id"]

    def test_verify_rejects_expired_token(self, app_with_auth: Flask, id_token):
        client = app_with_auth.test_client()

        response = client.post(
            "/auth/verify", json={"idToken": id_token("bob", exp=int(time.time()) - 1)}
        )

        assert response.status_code == 401
        assert response.get_json() == {"error": "Token has expired"}
        assert client.get("/auth/user?firebaseUid=bob").status_code == 404

    def test_verify_rejects_other_project(self, app_with_auth: Flask, id_token):
        response = app_with_auth.test_client().post(
            "/auth/verify", json={"idToken": id_token("carol", aud="someone-else")}
        )

        assert response.status_code == 401
        assert "Invalid audience" in response.get_json()["error"]


class TestProtectedRoutes:
    """Test routes guarded by FirebaseAuth.require."""

    def test_me_requires_authentication(self, app_with_auth: Flask):
        response = app_with_auth.test_client().get("/api/me")

        assert response.status_code == 401
        data = response.get_json()
        assert data["status"] == "denied"
        assert data["authenticated"] is False

    def test_me_returns_identity(self, app_with_auth: Flask, id_token):
        client = app_with_auth.test_client()
        token = id_token("dave")

        response = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        data = response.get_json()
        assert data["uid"] == "dave"
        assert data["provider"] == "password"

    def test_me_rejects_anonymous(self, app_with_auth: Flask, id_token):
        token = id_token("anon", provider="anonymous")

        response = app_with_auth.test_client().get(
            "/api/me", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 403
        assert response.get_json()["message"] == "Anonymous users are not allowed"

    def test_cleanup_requires_verified_email(self, app_with_auth: Flask, id_token):
        client = app_with_auth.test_client()
        unverified = id_token("erin", email_verified=False)
        verified = id_token("frank")

        denied = client.post(
            "/api/sessions/cleanup", headers={"Authorization": f"Bearer {unverified}"}
        )
        allowed = client.post(
            "/api/sessions/cleanup", headers={"Authorization": f"Bearer {verified}"}
        )

        assert denied.status_code == 403
        assert allowed.status_code == 200
        assert "removed" in allowed.get_json()


class TestErrorHandlers:
    """Test error handling."""

    def test_unknown_route_returns_json_404(self, app_with_auth: Flask):
        response = app_with_auth.test_client().get("/does-not-exist")

        assert response.status_code == 404
        assert response.get_json()["status"] == "error"

    def test_cors_preflight_allows_dev_origin(self, app_with_auth: Flask):
        response = app_with_auth.test_client().options(
            "/api/me",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert response.headers.get("Access-Control-Allow-Origin") == "http://localhost:5173"
