import pytest
from flask import Flask

from firebase_token_auth import (
    HOSTING_SESSION_COOKIE,
    BearerExtractor,
    CookieExtractor,
    FirstOfExtractor,
    MissingToken,
    id_token_from_authorization,
)


@pytest.mark.parametrize(
    "header, token",
    [
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("bearer abc.def.ghi", "abc.def.ghi"),
        ("  Bearer   abc.def.ghi  ", "abc.def.ghi"),
    ],
)
def test_id_token_from_authorization(header: str, token: str):
    assert id_token_from_authorization(header) == token


@pytest.mark.parametrize(
    "header, message",
    [
        (None, "Authorization header is absent"),
        ("   ", "Authorization header is absent"),
        ("Bearer", "Bearer credentials are empty"),
        ("Basic dXNlcjpwYXNz", "unsupported authorization scheme 'Basic'"),
    ],
)
def test_id_token_from_authorization_rejects(header, message: str):
    with pytest.raises(MissingToken, match=message):
        id_token_from_authorization(header)


def test_bearer_extractor_reads_header(app: Flask):
    extractor = BearerExtractor()

    with app.test_request_context("/", headers={"Authorization": "Bearer abc.def.ghi"}):
        assert extractor.extract() == "abc.def.ghi"

    with app.test_request_context("/"):
        with pytest.raises(MissingToken, match="Authorization header is absent"):
            extractor.extract()


def test_cookie_extractor(app: Flask):
    extractor = CookieExtractor()

    with app.test_request_context("/", headers={"Cookie": "id_token=abc.def.ghi"}):
        assert extractor.extract() == "abc.def.ghi"

    with app.test_request_context("/"):
        with pytest.raises(MissingToken, match="cookie 'id_token' is not set"):
            extractor.extract()


def test_cookie_extractor_hosting_session_cookie(app: Flask):
    extractor = CookieExtractor(HOSTING_SESSION_COOKIE)

    with app.test_request_context("/", headers={"Cookie": "__session=abc.def.ghi"}):
        assert extractor.extract() == "abc.def.ghi"


def test_cookie_extractor_requires_name():
    with pytest.raises(ValueError):
        CookieExtractor(cookie_name=" ")


class TestFirstOfExtractor:
    def test_prefers_earlier_extractor(self, app: Flask):
        extractor = FirstOfExtractor(BearerExtractor(), CookieExtractor())

        with app.test_request_context(
            "/",
            headers={"Authorization": "Bearer from.header.x", "Cookie": "id_token=from.cookie.x"},
        ):
            assert extractor.extract() == "from.header.x"

    def test_falls_back_to_cookie(self, app: Flask):
        extractor = FirstOfExtractor(BearerExtractor(), CookieExtractor())

        with app.test_request_context("/", headers={"Cookie": "id_token=from.cookie.x"}):
            assert extractor.extract() == "from.cookie.x"

    def test_raises_first_error_when_nothing_found(self, app: Flask):
        extractor = FirstOfExtractor(BearerExtractor(), CookieExtractor())

        with app.test_request_context("/"):
            with pytest.raises(MissingToken, match="Authorization header is absent"):
                extractor.extract()

    def test_requires_an_extractor(self):
        with pytest.raises(ValueError):
            FirstOfExtractor()
