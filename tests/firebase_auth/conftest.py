import json
import time
from typing import Any

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from flask import Flask
from jwt.algorithms import RSAAlgorithm

from tests.firebase_auth.fakes import ISSUER, PROJECT_ID, FakeRedis


@pytest.fixture()
def app():
    app = Flask(__name__)
    app.config["TESTING"] = True
    return app


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def make_jwk(rsa_key: rsa.RSAPrivateKey):
    """
    Factory fixture returning the public JWK of a private key.

    Usage in tests:
        jwk = make_jwk(kid="k1")
    """

    def _make(*, kid: str = "kid1", key: rsa.RSAPrivateKey | None = None) -> dict[str, Any]:
        jwk = json.loads(RSAAlgorithm.to_jwk((key or rsa_key).public_key()))
        jwk.update({"kid": kid, "alg": "RS256", "use": "sig"})
        return jwk

    return _make


@pytest.fixture
def claims_factory():
    """Factory for a valid Firebase payload; keyword args override claims."""

    def _make(**overrides: Any) -> dict[str, Any]:
        now = int(time.time())
        claims: dict[str, Any] = {
            "iss": ISSUER,
            "aud": PROJECT_ID,
            "sub": "uid-123",
            "iat": now - 60,
            "exp": now + 3600,
            "auth_time": now - 120,
            "email": "ada@example.com",
            "email_verified": True,
            "name": "Ada Lovelace",
            "picture": "https://example.com/ada.png",
            "firebase": {"sign_in_provider": "password", "identities": {}},
        }
        claims.update(overrides)
        return {k: v for k, v in claims.items() if v is not None}

    return _make


@pytest.fixture
def make_token(rsa_key: rsa.RSAPrivateKey, claims_factory):
    """Sign a Firebase-shaped token with the test key."""

    def _make(
        *,
        kid: str = "kid1",
        key: rsa.RSAPrivateKey | None = None,
        **overrides: Any,
    ) -> str:
        return jwt.encode(
            claims_factory(**overrides),
            key or rsa_key,
            algorithm="RS256",
            headers={"kid": kid},
        )

    return _make


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()
