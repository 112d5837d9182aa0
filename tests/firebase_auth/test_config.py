import pytest

import firebase_token_auth as m

ENV_VARS = (
    "FIREBASE_PROJECT_ID",
    "FIREBASE_API_KEY",
    "FIREBASE_AUTH_PATH_PREFIX",
    "FIREBASE_JWKS_URL",
    "FIREBASE_JWKS_DEFAULT_TTL",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_get_env_var(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FIREBASE_PROJECT_ID", "demo-project")
    assert m.get_env_var("FIREBASE_PROJECT_ID") == "demo-project"


@pytest.mark.parametrize("value", [None, ""])
def test_get_env_var_missing(monkeypatch: pytest.MonkeyPatch, value):
    if value is not None:
        monkeypatch.setenv("FIREBASE_PROJECT_ID", value)

    with pytest.raises(m.ConfigurationError, match="Missing environment variable: FIREBASE_PROJECT_ID"):
        m.get_env_var("FIREBASE_PROJECT_ID")


def test_from_env_defaults(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FIREBASE_PROJECT_ID", "demo-project")

    settings = m.FirebaseSettings.from_env(dotenv=False)

    assert settings == m.FirebaseSettings(project_id="demo-project")
    assert settings.api_key is None
    assert settings.path_prefix == "/auth"
    assert settings.jwks_url == m.GOOGLE_JWK_URL
    assert settings.jwks_default_ttl == m.DEFAULT_TTL_SECONDS


def test_from_env_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FIREBASE_PROJECT_ID", "demo-project")
    monkeypatch.setenv("FIREBASE_API_KEY", "web-key")
    monkeypatch.setenv("FIREBASE_AUTH_PATH_PREFIX", "/firebase")
    monkeypatch.setenv("FIREBASE_JWKS_URL", "https://keys.example.com/jwks")
    monkeypatch.setenv("FIREBASE_JWKS_DEFAULT_TTL", "120")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FORMAT", "JSON")

    settings = m.FirebaseSettings.from_env(dotenv=False)

    assert settings.api_key == "web-key"
    assert settings.path_prefix == "/firebase"
    assert settings.jwks_url == "https://keys.example.com/jwks"
    assert settings.jwks_default_ttl == 120
    assert settings.log_level == "DEBUG"
    assert settings.log_format == "json"


def test_from_env_requires_project_id():
    with pytest.raises(m.ConfigurationError, match="FIREBASE_PROJECT_ID"):
        m.FirebaseSettings.from_env(dotenv=False)


def test_from_env_rejects_bad_ttl(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FIREBASE_PROJECT_ID", "demo-project")
    monkeypatch.setenv("FIREBASE_JWKS_DEFAULT_TTL", "an hour")

    with pytest.raises(m.ConfigurationError, match="FIREBASE_JWKS_DEFAULT_TTL"):
        m.FirebaseSettings.from_env(dotenv=False)


def test_from_env_rejects_bad_log_format(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FIREBASE_PROJECT_ID", "demo-project")
    monkeypatch.setenv("LOG_FORMAT", "xml")

    with pytest.raises(m.ConfigurationError, match="LOG_FORMAT"):
        m.FirebaseSettings.from_env(dotenv=False)

