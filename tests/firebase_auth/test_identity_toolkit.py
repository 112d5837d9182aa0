import pytest

import firebase_token_auth as m
from firebase_token_auth.identity_toolkit import IDENTITY_TOOLKIT_BASE, SECURE_TOKEN_URL
from tests.firebase_auth.fakes import FakeResponse, FakeSession


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client(session: FakeSession) -> m.IdentityToolkitClient:
    return m.IdentityToolkitClient("api-key", session=session, timeout=3.0)


def test_empty_api_key_is_configuration_error():
    with pytest.raises(m.ConfigurationError):
        m.IdentityToolkitClient("")


def test_get_user_data_posts_id_token(client, session):
    session.queue(FakeResponse(200, '{"users": [{"localId": "u1"}]}'))

    assert client.get_user_data("tok") == '{"users": [{"localId": "u1"}]}'
    assert session.calls == [
        (
            "POST",
            f"{IDENTITY_TOOLKIT_BASE}/accounts:lookup",
            {"params": {"key": "api-key"}, "timeout": 3.0, "json": {"idToken": "tok"}},
        )
    ]


def test_send_password_reset_email(client, session):
    session.queue(FakeResponse(200, "{}"))

    client.send_password_reset_email("ada@example.com")

    method, url, kwargs = session.calls[0]
    assert url.endswith("/accounts:sendOobCode")
    assert kwargs["json"] == {"requestType": "PASSWORD_RESET", "email": "ada@example.com"}


def test_send_email_verification(client, session):
    session.queue(FakeResponse(200, "{}"))

    client.send_email_verification("tok")

    _, url, kwargs = session.calls[0]
    assert url.endswith("/accounts:sendOobCode")
    assert kwargs["json"] == {"requestType": "VERIFY_EMAIL", "idToken": "tok"}


def test_delete_account(client, session):
    session.queue(FakeResponse(200, "{}"))

    client.delete_account("tok")

    _, url, kwargs = session.calls[0]
    assert url == f"{IDENTITY_TOOLKIT_BASE}/accounts:delete"
    assert kwargs["json"] == {"idToken": "tok"}


def test_refresh_token_is_form_encoded(client, session):
    session.queue(FakeResponse(200, '{"id_token": "new"}'))

    assert client.refresh_token("refresh-me") == '{"id_token": "new"}'

    _, url, kwargs = session.calls[0]
    assert url == SECURE_TOKEN_URL
    assert kwargs["data"] == {"grant_type": "refresh_token", "refresh_token": "refresh-me"}
    assert "json" not in kwargs


def test_error_status_carries_firebase_body(client, session):
    body = '{"error": {"code": 400, "message": "EMAIL_NOT_FOUND"}}'
    session.queue(FakeResponse(400, body))

    with pytest.raises(m.IdentityToolkitError, match="EMAIL_NOT_FOUND") as exc_info:
        client.send_password_reset_email("nobody@example.com")

    assert exc_info.value.operation == "sendPasswordResetEmail"
    assert exc_info.value.status_code == 400
    assert exc_info.value.body == body
    assert str(exc_info.value) == f"Firebase sendPasswordResetEmail failed: {body}"
